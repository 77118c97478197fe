"""Waste categories, their presentation themes, and label-to-category mapping."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class WasteCategory(StrEnum):
    ORGANIC = "organic"
    PLASTIC = "plastic"
    PAPER = "paper"
    METAL = "metal"
    GLASS = "glass"
    E_WASTE = "e-waste"
    OTHER = "other"


@dataclass(frozen=True)
class CategoryStyle:
    """Color classes and icon used to render a category."""

    bg: str
    text: str
    light: str
    border: str
    icon: str


def _palette(color: str, icon: str) -> CategoryStyle:
    return CategoryStyle(
        bg=f"bg-{color}-500",
        text=f"text-{color}-600",
        light=f"bg-{color}-50",
        border=f"border-{color}-200",
        icon=icon,
    )


CATEGORY_STYLES: dict[WasteCategory, CategoryStyle] = {
    WasteCategory.ORGANIC: _palette("green", "leaf"),
    WasteCategory.PLASTIC: _palette("amber", "bottle"),
    WasteCategory.PAPER: _palette("sky", "newspaper"),
    WasteCategory.METAL: _palette("zinc", "cog"),
    WasteCategory.GLASS: _palette("emerald", "wine-glass"),
    WasteCategory.E_WASTE: _palette("indigo", "chip"),
}

FALLBACK_STYLE = _palette("rose", "trash")


def category_style(category: WasteCategory | str) -> CategoryStyle:
    """Return the theme for a category.

    Accepts raw strings so results from other classifiers render too. Anything
    that is not a known category, including ``other``, gets the fallback theme.
    """
    try:
        known = WasteCategory(category)
    except ValueError:
        return FALLBACK_STYLE
    return CATEGORY_STYLES.get(known, FALLBACK_STYLE)


DISPOSAL_INSTRUCTIONS: dict[WasteCategory, str] = {
    WasteCategory.ORGANIC: (
        "Compost it. Put food scraps and plant matter in the green organics bin or a home compost heap. "
        "Remove stickers, bags and any packaging first."
    ),
    WasteCategory.PLASTIC: (
        "Empty and rinse the item, then place it in the plastics recycling bin. "
        "Soft films and bags usually belong at a store drop-off point instead."
    ),
    WasteCategory.PAPER: (
        "Flatten it and put it in the paper recycling bin. "
        "Keep it dry; greasy or food-soiled paper goes to compost instead."
    ),
    WasteCategory.METAL: (
        "Rinse food residue off and place it in the metals recycling bin. "
        "Larger metal objects go to a scrap metal collection point."
    ),
    WasteCategory.GLASS: (
        "Rinse it and place it in the glass bank, sorted by color if your area asks for it. "
        "Broken drinking glasses, mirrors and ceramics are not glass recycling."
    ),
    WasteCategory.E_WASTE: (
        "Never bin electronics. Take it to an e-waste collection point or a retailer take-back scheme. "
        "Remove batteries and wipe personal data first."
    ),
}

FALLBACK_INSTRUCTIONS = (
    "No specific recycling stream was identified. Check your local council's rules, "
    "consider donating or repairing the item, and use general waste only as a last resort."
)


def disposal_instructions(category: WasteCategory | str) -> str:
    try:
        known = WasteCategory(category)
    except ValueError:
        return FALLBACK_INSTRUCTIONS
    return DISPOSAL_INSTRUCTIONS.get(known, FALLBACK_INSTRUCTIONS)


# Keyword groups, matched against the comma-separated synonyms of a model label.
# Checked in order: the first group containing a synonym wins.
_KEYWORDS: list[tuple[WasteCategory, frozenset[str]]] = [
    (
        WasteCategory.E_WASTE,
        frozenset(
            {
                "cellular telephone", "cellular phone", "cellphone", "cell phone", "mobile phone",
                "laptop", "laptop computer", "notebook", "notebook computer", "desktop computer",
                "computer keyboard", "keypad", "mouse", "computer mouse", "monitor", "screen",
                "crt screen", "television", "television system", "tv", "remote control", "remote",
                "ipod", "modem", "hard disc", "hard disk", "fixed disk", "joystick", "printer",
                "loudspeaker", "speaker", "radio", "wireless", "hand-held computer",
                "hand-held microcomputer", "dial telephone", "dial phone", "pay-phone", "pay-station",
                "digital watch", "digital clock", "microwave", "microwave oven", "electric fan",
                "blower", "hand blower", "hair dryer", "hair drier", "toaster", "iron", "smoothing iron",
                "space heater", "vacuum", "vacuum cleaner", "projector", "cassette player", "cd player",
                "tape player", "calculator", "switch", "electric switch", "power drill", "camera",
                "reflex camera", "polaroid camera", "electric guitar", "battery",
            }
        ),
    ),
    (
        WasteCategory.GLASS,
        frozenset(
            {
                "beer bottle", "wine bottle", "beer glass", "wine glass", "goblet", "red wine",
                "vase", "perfume", "essence", "glass jar", "mason jar", "jar", "bottle",
            }
        ),
    ),
    (
        WasteCategory.METAL,
        frozenset(
            {
                "can", "tin can", "aluminum can", "beer can", "soda can", "can opener", "tin opener",
                "milk can", "frying pan", "frypan", "skillet", "wok", "caldron", "cauldron",
                "dutch oven", "ladle", "padlock", "chain", "nail", "screw", "safety pin", "hammer",
                "wrench", "adjustable spanner", "cocktail shaker", "steel drum", "mailbox", "letter box",
                "barbell", "dumbbell", "scissors", "spatula",
            }
        ),
    ),
    (
        WasteCategory.PAPER,
        frozenset(
            {
                "envelope", "carton", "cardboard", "paper towel", "toilet tissue", "toilet paper",
                "bathroom tissue", "book jacket", "dust cover", "dust jacket", "dust wrapper",
                "comic book", "crossword puzzle", "crossword", "menu", "paper bag", "newspaper",
                "magazine", "binder", "ring-binder", "notebook paper", "paper",
            }
        ),
    ),
    (
        WasteCategory.PLASTIC,
        frozenset(
            {
                "water bottle", "pop bottle", "soda bottle", "plastic bag", "water jug", "bucket",
                "pail", "pill bottle", "shower cap", "lotion", "sunscreen", "sunblock", "sun blocker",
                "soap dispenser", "packet", "plastic", "cup", "straw", "tray", "plunger",
                "plumber's helper", "lighter", "light", "igniter", "ignitor",
            }
        ),
    ),
    (
        WasteCategory.ORGANIC,
        frozenset(
            {
                "banana", "granny smith", "apple", "orange", "lemon", "fig", "pineapple", "ananas",
                "strawberry", "pomegranate", "custard apple", "jackfruit", "jak", "jack", "broccoli",
                "cauliflower", "head cabbage", "zucchini", "courgette", "cucumber", "cuke",
                "bell pepper", "mushroom", "acorn squash", "butternut squash", "spaghetti squash",
                "artichoke", "globe artichoke", "corn", "ear", "spike", "capitulum", "acorn", "hip",
                "rose hip", "rosehip", "buckeye", "horse chestnut", "conker", "hay", "pizza",
                "pizza pie", "cheeseburger", "hotdog", "hot dog", "red hot", "bagel", "beigel",
                "pretzel", "french loaf", "burrito", "meat loaf", "meatloaf", "potpie", "guacamole",
                "trifle", "ice cream", "icecream", "carbonara", "consomme", "hot pot", "hotpot",
                "mashed potato", "dough", "daisy", "rapeseed", "sandwich", "food", "fruit",
                "vegetable", "leaf", "egg",
            }
        ),
    ),
]


def _synonyms(label: str) -> list[str]:
    return [part.strip().lower() for part in label.split(",") if part.strip()]


def categorize_label(label: str) -> tuple[WasteCategory, str | None]:
    """Map a model label to a waste category.

    Returns:
        The category and the synonym that matched, or ``(OTHER, None)``.
    """
    synonyms = _synonyms(label)
    for category, keywords in _KEYWORDS:
        for synonym in synonyms:
            if synonym in keywords:
                return category, synonym
    return WasteCategory.OTHER, None
