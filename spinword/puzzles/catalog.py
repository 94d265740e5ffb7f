"""
Puzzle Catalog - Read-only puzzle data, grouped by category.

Most categories are plain lists of phrases. Two categories carry structured
templates:
- BEFORE & AFTER: before / shared / after words, joined into one phrase
- THEN AND NOW: an old and a new thing, shown as "THEN / NOW"

The catalog is injected into the PuzzleGenerator; nothing here is mutated.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterator, Mapping, Union

from ..engine_core.state import FormatKind, PuzzleState, SpecialFormat


BEFORE_AND_AFTER = "BEFORE & AFTER"
THEN_AND_NOW = "THEN AND NOW"
RHYME_TIME = "RHYME TIME"
SAME_LETTER = "SAME LETTER"
WHAT_ARE_YOU_DOING = "WHAT ARE YOU DOING?"


@dataclass(frozen=True)
class BeforeAfter:
    before: str
    shared: str
    after: str

    @property
    def full(self) -> str:
        return f"{self.before} {self.shared} {self.after}"


@dataclass(frozen=True)
class ThenNow:
    then: str
    now: str

    @property
    def full(self) -> str:
        return f"{self.then} / {self.now}"


Template = Union[str, BeforeAfter, ThenNow]


DEFAULT_TEMPLATES: dict[str, tuple[Template, ...]] = {
    "PHRASE": (
        "GREAT IDEA", "HAPPY BIRTHDAY", "GOOD LUCK", "SWEET DREAMS", "BEST WISHES",
        "TRUE LOVE", "BRIGHT FUTURE", "PERFECT TIMING", "FRESH START", "GOLDEN OPPORTUNITY",
        "SECOND CHANCE", "WILD GUESS", "LAST RESORT", "COMMON SENSE", "PIECE OF CAKE",
        "BREAK A LEG", "BITE THE BULLET", "SPILL THE BEANS", "BREAK THE ICE", "CALL IT A DAY",
        "CROSS YOUR FINGERS", "EASY AS PIE", "ONCE IN A LIFETIME", "BETTER LATE THAN NEVER",
        "PRACTICE MAKES PERFECT", "TIME IS MONEY", "KNOWLEDGE IS POWER",
        "WELCOME TO THE CLUB", "AGAINST ALL ODDS", "CHANGE OF HEART", "DREAM COME TRUE",
        "IN THE NICK OF TIME", "JUMP FOR JOY", "KEEP YOUR CHIN UP", "NEVER GIVE UP",
        "ON TOP OF THE WORLD", "RISE AND SHINE", "TAKE IT EASY", "UNDER THE WEATHER",
        "YOUNG AT HEART", "ZERO TO HERO", "EVERY CLOUD HAS A SILVER LINING",
    ),
    BEFORE_AND_AFTER: (
        BeforeAfter("BLUE", "MOON", "WALK"),
        BeforeAfter("BIRTHDAY", "PARTY", "ANIMAL"),
        BeforeAfter("COFFEE", "BREAK", "DANCING"),
        BeforeAfter("BOOK", "CLUB", "SANDWICH"),
        BeforeAfter("FIRE", "TRUCK", "STOP"),
        BeforeAfter("SCHOOL", "BUS", "DRIVER"),
        BeforeAfter("APPLE", "PIE", "CHART"),
        BeforeAfter("DANCE", "FLOOR", "LAMP"),
        BeforeAfter("PAPER", "TRAIL", "MIX"),
        BeforeAfter("BABY", "SHOWER", "CURTAIN"),
        BeforeAfter("CHICKEN", "WING", "SPAN"),
        BeforeAfter("FRENCH", "TOAST", "MASTER"),
        BeforeAfter("HONEY", "BEE", "HIVE"),
        BeforeAfter("MOVIE", "STAR", "FISH"),
        BeforeAfter("SILVER", "SCREEN", "DOOR"),
        BeforeAfter("TENNIS", "BALL", "ROOM"),
    ),
    RHYME_TIME: (
        "BEST TEST", "QUICK TRICK", "BRIGHT LIGHT", "SWEET TREAT", "FAIR SHARE",
        "TRUE BLUE", "SNAIL MAIL", "BRAIN DRAIN", "FLOWER POWER", "LEGAL EAGLE",
        "PRIME TIME", "SPACE RACE", "WHALE TALE", "DOUBLE TROUBLE", "FUNNY MONEY",
        "MELLOW YELLOW", "PAPER CAPER", "SUPER DUPER", "ITTY BITTY", "NUTTY PUTTY",
    ),
    SAME_LETTER: (
        "PERFECT PIZZA PARTY", "SUPER SUNNY SATURDAY", "BUSY BEAUTIFUL BUTTERFLY",
        "HAPPY HEALTHY HOLIDAYS", "WILD WONDERFUL WEEKEND", "FRESH FANTASTIC FRIDAY",
        "COOL CRISP CUCUMBER", "FABULOUS FUNNY FRIENDS", "LOVELY LAUGHING LADIES",
        "PRETTY PINK PEONIES", "TERRIFIC TINY TURTLES", "ZANY ZIGZAGGING ZEBRAS",
        "BRAVE BOUNCING BUNNIES", "DARING DANCING DOGS", "GREAT GREEN GRAPES",
    ),
    THEN_AND_NOW: (
        ThenNow("RECORD PLAYER", "SPOTIFY"),
        ThenNow("TYPEWRITER", "LAPTOP"),
        ThenNow("PHONE BOOTH", "CELL PHONE"),
        ThenNow("VHS TAPE", "NETFLIX"),
        ThenNow("ENCYCLOPEDIA", "WIKIPEDIA"),
        ThenNow("PAPER MAP", "GPS NAVIGATION"),
        ThenNow("YELLOW PAGES", "GOOGLE SEARCH"),
        ThenNow("NEWSPAPER", "ONLINE NEWS"),
        ThenNow("HANDWRITTEN LETTERS", "EMAIL"),
        ThenNow("APPOINTMENT BOOK", "DIGITAL CALENDAR"),
    ),
    WHAT_ARE_YOU_DOING: (
        "WALKING THE DOG", "MAKING DINNER", "READING A BOOK", "WATCHING TV",
        "PLAYING GAMES", "DOING HOMEWORK", "LISTENING TO MUSIC", "CLEANING HOUSE",
        "FOLDING LAUNDRY", "PAINTING PICTURES", "PLAYING PIANO", "RIDING BIKES",
        "SOLVING PUZZLES", "LEARNING LANGUAGES", "HELPING NEIGHBORS", "MAKING FRIENDS",
    ),
    "THING": (
        "COMPUTER", "TELEPHONE", "BICYCLE", "CAMERA", "KEYBOARD", "BACKPACK",
        "WASHING MACHINE", "COFFEE MAKER", "TELEVISION", "REFRIGERATOR",
        "VACUUM CLEANER", "HAIR DRYER", "PICTURE FRAME", "REMOTE CONTROL",
        "FIRE EXTINGUISHER", "FIRST AID KIT", "SEWING MACHINE", "MEASURING TAPE",
    ),
    "PERSON": (
        "TEACHER", "DOCTOR", "ARTIST", "MUSICIAN", "FAMOUS ACTOR", "TALENTED SINGER",
        "SKILLED ATHLETE", "POLICE OFFICER", "FIREFIGHTER", "VETERINARIAN",
        "REAL ESTATE AGENT", "FLIGHT ATTENDANT", "ASTRONAUT", "PHOTOGRAPHER",
        "CHOREOGRAPHER", "ELECTRICIAN", "PROGRAMMER", "BARISTA",
    ),
    "PLACE": (
        "LIBRARY", "RESTAURANT", "MUSEUM", "BEAUTIFUL GARDEN", "HISTORIC BUILDING",
        "BUSY AIRPORT", "SHOPPING MALL", "COFFEE SHOP", "CONCERT HALL",
        "SPORTS STADIUM", "AMUSEMENT PARK", "NATIONAL PARK", "BED AND BREAKFAST",
        "TRAIN STATION", "FARMERS MARKET", "FLOWER SHOP",
    ),
    "ON THE MAP": (
        "NEW YORK CITY", "LOS ANGELES", "CHICAGO", "HOUSTON", "PHILADELPHIA",
        "SAN DIEGO", "SEATTLE", "DENVER", "BOSTON", "NASHVILLE", "LAS VEGAS",
        "KANSAS CITY", "ATLANTA", "NEW ORLEANS", "HONOLULU", "SAINT PAUL",
    ),
    "FOOD & DRINK": (
        "CHOCOLATE CHIP COOKIES", "VANILLA ICE CREAM", "STRAWBERRY SHORTCAKE",
        "BANANA SPLIT", "CINNAMON ROLLS", "PANCAKES AND SYRUP", "GRILLED CHEESE",
        "PEANUT BUTTER AND JELLY", "CAESAR SALAD", "CHICKEN NOODLE SOUP",
        "SPAGHETTI AND MEATBALLS", "PEPPERONI PIZZA", "FISH AND CHIPS",
        "CORN ON THE COB",
    ),
}


def template_text(template: Template) -> str:
    """Board text for a template."""
    if isinstance(template, str):
        return template.upper()
    return template.full.upper()


def build_puzzle(category: str, template: Template) -> PuzzleState:
    """Turn a catalog template into an unrevealed puzzle."""
    text = template_text(template)

    if isinstance(template, BeforeAfter):
        fmt = SpecialFormat(
            kind=FormatKind.BEFORE_AFTER,
            before=template.before,
            shared=template.shared,
            after=template.after,
        )
    elif isinstance(template, ThenNow):
        fmt = SpecialFormat(kind=FormatKind.THEN_NOW, then=template.then, now=template.now)
    elif category == RHYME_TIME:
        fmt = SpecialFormat(kind=FormatKind.RHYME)
    elif category == SAME_LETTER:
        fmt = SpecialFormat(kind=FormatKind.SAME_LETTER, letter=text[0])
    elif category == WHAT_ARE_YOU_DOING:
        fmt = SpecialFormat(kind=FormatKind.QUESTION, question=category)
    else:
        fmt = SpecialFormat()

    return PuzzleState(text=text, category=category, special_format=fmt)


class PuzzleCatalog:
    """
    Read-only collection of puzzle templates.

    Puzzles are identified by their board text, which is unique across
    the catalog.
    """

    def __init__(self, templates: Mapping[str, tuple[Template, ...]] | None = None):
        source = templates if templates is not None else DEFAULT_TEMPLATES
        self._templates: dict[str, tuple[Template, ...]] = {
            cat: tuple(items) for cat, items in source.items() if items
        }
        if not self._templates:
            raise ValueError("Puzzle catalog is empty")

    @property
    def categories(self) -> list[str]:
        return list(self._templates)

    def __len__(self) -> int:
        return sum(len(items) for items in self._templates.values())

    def __iter__(self) -> Iterator[PuzzleState]:
        for category, items in self._templates.items():
            for template in items:
                yield build_puzzle(category, template)

    def puzzles(self, category: str | None = None) -> list[PuzzleState]:
        """All puzzles, or those in one category."""
        if category is None:
            return list(self)
        if category not in self._templates:
            raise KeyError(f"Unknown category: {category}")
        return [build_puzzle(category, t) for t in self._templates[category]]

    def find(self, text: str) -> PuzzleState | None:
        """Look a puzzle up by its board text."""
        text = text.upper()
        for puzzle in self:
            if puzzle.text == text:
                return puzzle
        return None
