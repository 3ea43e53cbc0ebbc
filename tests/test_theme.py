from theme import DARK, LIGHT, THEMES, other_theme, resolve_theme


def test_resolve_theme_defaults_to_light():
    assert resolve_theme(None).colors == LIGHT
    assert resolve_theme("DARK").colors == DARK
    assert resolve_theme("sepia").name == "light"


def test_other_theme():
    assert other_theme("light") == "dark"
    assert other_theme("dark") == "light"
    assert other_theme(None) == "dark"


def test_status_colors_follow_palette():
    light, dark = THEMES["light"], THEMES["dark"]
    assert light.status_color("cancelled") == LIGHT.danger
    assert dark.status_color("cancelled") == DARK.danger
    assert light.status_color("ready") == LIGHT.info
    assert light.status_color("mystery") == LIGHT.muted


def test_css_variables():
    css = THEMES["light"].css_variables()
    assert "--brand: #FF6F00" in css
    assert "--danger: #D32F2F" in css
