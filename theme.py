from dataclasses import asdict, dataclass

from order_status import status_style


@dataclass(frozen=True)
class Palette:
    brand: str
    brand2: str
    accent: str
    bg: str
    surface: str
    text: str
    muted: str
    danger: str
    info: str


LIGHT = Palette(
    brand="#FF6F00",
    brand2="#E9A100",
    accent="#2B8A4B",
    bg="#FFF8F0",
    surface="#FFFFFF",
    text="#2C2C2C",
    muted="#DDC9B5",
    danger="#D32F2F",
    info="#2196F3",
)

DARK = Palette(
    brand="#FF8F33",
    brand2="#F2B833",
    accent="#4CAF6E",
    bg="#1A1410",
    surface="#2A211B",
    text="#F5EDE4",
    muted="#8C7B6B",
    danger="#EF5350",
    info="#64B5F6",
)


@dataclass(frozen=True)
class Theme:
    name: str
    colors: Palette

    def color(self, key: str) -> str:
        return getattr(self.colors, key, self.colors.muted)

    def status_color(self, status) -> str:
        return self.color(status_style(status).color_key)

    def css_variables(self) -> str:
        return "; ".join(f"--{k}: {v}" for k, v in asdict(self.colors).items())


THEMES = {
    "light": Theme("light", LIGHT),
    "dark": Theme("dark", DARK),
}


def resolve_theme(name: str | None) -> Theme:
    return THEMES.get((name or "").lower(), THEMES["light"])


def other_theme(name: str | None) -> str:
    return "dark" if resolve_theme(name).name == "light" else "light"
