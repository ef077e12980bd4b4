"""
Display icons for categories. Icons are decoration only and are never sent
back to the backend.

Keywords are declared from most to least specific. Lookup takes the longest
keyword contained in the normalized name; between keywords of equal length
the one declared first wins.
"""
from typing import Dict, Iterable, List, Tuple

DEFAULT_ICON = "📋"

# Backend category names arrive in Spanish or English; each keyword is
# followed by its counterpart in the other language.
CATEGORY_ICON_KEYWORDS: List[Tuple[str, str]] = [
    # water
    ("murky water", "🌊"),
    ("agua turbia", "🌊"),
    ("pipe leak", "💧"),
    ("fuga en tubería", "💧"),
    ("low pressure", "💧"),
    ("baja presión", "💧"),
    ("water service", "🚿"),
    ("servicio de agua", "🚿"),
    ("no water", "💧"),
    ("sin agua", "💧"),
    # power
    ("electric power", "🔋"),
    ("energía eléctrica", "🔋"),
    ("irregular voltage", "⚡"),
    ("voltaje irregular", "⚡"),
    ("intermittent outages", "💡"),
    ("cortes intermitentes", "💡"),
    ("street lighting", "🏮"),
    ("alumbrado público", "🏮"),
    ("total blackout", "🌑"),
    ("apagón total", "🌑"),
    ("fallen cable", "🔌"),
    ("cable caído", "🔌"),
    # infrastructure
    ("roads and potholes", "🛣️"),
    ("vías y baches", "🛣️"),
    ("infrastructure", "🏗️"),
    ("infraestructura", "🏗️"),
    # services
    ("garbage collection", "🗑️"),
    ("recolección de basura", "🗑️"),
    ("public services", "🏛️"),
    ("servicios públicos", "🏛️"),
    # general
    ("public transport", "🚍"),
    ("transporte público", "🚍"),
    ("transport", "🚌"),
    ("transporte", "🚌"),
    ("safety", "🛡️"),
    ("seguridad", "🛡️"),
    ("environment", "🌱"),
    ("medio ambiente", "🌱"),
    ("health", "🏥"),
    ("salud", "🏥"),
    ("education", "🏫"),
    ("educación", "🏫"),
    # broad keywords
    ("water", "💧"),
    ("agua", "💧"),
    ("power", "⚡"),
    ("energía", "⚡"),
    ("garbage", "♻️"),
    ("basura", "♻️"),
    ("streets", "🛤️"),
    ("calles", "🛤️"),
    ("traffic", "🚗"),
    ("tráfico", "🚗"),
    ("parks", "🏞️"),
    ("parques", "🏞️"),
    ("other", "📝"),
    ("otros", "📝"),
    ("general", "📋"),
]


def _by_specificity(table: Iterable[Tuple[str, str]]) -> List[Tuple[str, str]]:
    # sorted() is stable, so declaration order survives among equal lengths
    return sorted(table, key=lambda item: len(item[0]), reverse=True)


_SORTED_KEYWORDS = _by_specificity(CATEGORY_ICON_KEYWORDS)
_EXACT: Dict[str, str] = {}
for _keyword, _icon in CATEGORY_ICON_KEYWORDS:
    _EXACT.setdefault(_keyword, _icon)


def icon_for(category_name: str) -> str:
    if not category_name:
        return DEFAULT_ICON

    name = category_name.lower().strip()
    if name in _EXACT:
        return _EXACT[name]

    for keyword, icon in _SORTED_KEYWORDS:
        if keyword in name:
            return icon
    return DEFAULT_ICON
