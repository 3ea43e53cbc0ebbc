from flask import Blueprint, jsonify, request

from charts import HIT_RADIUS, nearest_point, scale_series
from order_status import OrderStatus, can_cancel, is_terminal, next_status
from pricing import OrderValidationError, lines_from_dicts, quote_order

api = Blueprint("api", __name__, url_prefix="/api")


@api.post("/quote")
def quote():
    data = request.get_json(force=True, silent=True)
    if not isinstance(data, dict):
        return jsonify({"message": "Request body must be a JSON object"}), 400

    prices = data.get("prices") or {}
    sabjis = data.get("sabjis")
    if sabjis is not None and not (isinstance(sabjis, list) and all(isinstance(s, str) for s in sabjis)):
        return jsonify({"message": "sabjis must be a list of names"}), 400

    try:
        lines = lines_from_dicts(data.get("items") or [])
        result = quote_order(prices, lines, sabjis)
    except OrderValidationError as e:
        return jsonify({"message": str(e)}), 400
    except KeyError as e:
        return jsonify({"message": f"Missing price for {e.args[0]}"}), 400

    return jsonify({
        "items": [{
            "mealType": line.meal_type.value,
            "sabji": line.sabji,
            "quantity": line.quantity,
            "pricePerUnit": line.price_per_unit,
            "totalPrice": line.total_price,
        } for line in result.lines],
        "grandTotal": result.grand_total,
    })


@api.post("/chart/nearest")
def chart_nearest():
    data = request.get_json(force=True, silent=True)
    if not isinstance(data, dict):
        return jsonify({"message": "Request body must be a JSON object"}), 400
    try:
        series = [(s["label"], float(s["value"])) for s in data.get("series") or []]
        width = float(data.get("width", 0))
        height = float(data.get("height", 0))
        x = float(data["x"])
        y = float(data["y"]) if data.get("y") is not None else None
        radius = float(data.get("radius", HIT_RADIUS))
    except (KeyError, TypeError, ValueError):
        return jsonify({"message": "series, width, height and x are required"}), 400

    point = nearest_point(scale_series(series, width, height), x, y, radius)
    if point is None:
        return jsonify({"point": None})
    return jsonify({"point": {"x": point.x, "y": point.y, "label": point.label, "value": point.value}})


@api.get("/status/<status>")
def status_info(status: str):
    try:
        parsed = OrderStatus.parse(status)
    except ValueError:
        return jsonify({"message": f"Unknown status: {status}"}), 404

    following = next_status(parsed)
    return jsonify({
        "status": parsed.value,
        "next": following.value if following else None,
        "canCancel": can_cancel(parsed),
        "terminal": is_terminal(parsed),
    })
