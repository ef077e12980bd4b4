from reportsync.utils.category_icons import DEFAULT_ICON, icon_for


def test_exact_match():
    assert icon_for("Transport") == "🚌"
    assert icon_for("  HEALTH ") == "🏥"


def test_longest_keyword_wins():
    # "public transport" beats "transport"
    assert icon_for("Public Transport Delays") == "🚍"
    # "water service" beats "water"
    assert icon_for("Water service interruption") == "🚿"
    # "public services" (15) beats "electric power" (14)
    assert icon_for("electric power for public services") == "🏛️"


def test_equal_length_tie_goes_to_first_declared():
    # both keywords are 15 chars, "street lighting" is declared first
    assert icon_for("street lighting of public services") == "🏮"
    # both 14 chars, "electric power" is declared first
    assert icon_for("total blackout of electric power") == "🔋"


def test_unmatched_and_empty_names_get_default():
    assert icon_for("Graffiti") == DEFAULT_ICON
    assert icon_for("") == DEFAULT_ICON


def test_spanish_category_names():
    assert icon_for("Vías y Baches") == "🛣️"
    assert icon_for("Agua Turbia") == "🌊"
    assert icon_for("Transporte Público") == "🚍"
    # "servicio de agua" beats "agua"
    assert icon_for("Servicio de agua potable") == "🚿"
    # "recolección de basura" beats "basura"
    assert icon_for("Recolección de basura domiciliaria") == "🗑️"
    assert icon_for("Apagón total en el barrio") == "🌑"
