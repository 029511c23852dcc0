from typing import Mapping, Tuple

DEFAULT_ICON = "📦"

# побеждает первая подходящая группа
NAME_ICONS: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("shirt", "tee"), "👕"),
    (("jacket", "coat"), "🧥"),
    (("pant", "jean", "denim"), "👖"),
    (("bag", "satchel"), "👜"),
    (("shoe", "sneaker"), "👟"),
    (("hat", "cap"), "🎩"),
    (("dress",), "👗"),
    (("sweater", "sweatshirt"), "🧶"),
)


def icon_for(name: str, table=NAME_ICONS, default: str = DEFAULT_ICON) -> str:
    """Иконка по ключевому слову в названии товара"""
    lowered = name.lower()
    return next(
        (icon for keywords, icon in table if any(k in lowered for k in keywords)),
        default,
    )


def icon_table(mapping: Mapping[str, str]) -> Tuple[Tuple[Tuple[str, ...], str], ...]:
    """Таблица из {слово: иконка} для своего набора иконок"""
    return tuple(((keyword.lower(),), icon) for keyword, icon in mapping.items())
