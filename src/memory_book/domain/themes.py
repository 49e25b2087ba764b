"""Page themes."""

from enum import StrEnum


class Theme(StrEnum):
    """Fixed set of page themes suggested by the classifier."""

    ADVENTURE = "adventure"
    COZY = "cozy"
    CELEBRATION = "celebration"
    NATURE = "nature"
    FAMILY = "family"
    MILESTONE = "milestone"
    PLAYFUL = "playful"
    LOVE = "love"
    GROWTH = "growth"
    SERENE = "serene"

    @classmethod
    def parse(cls, value: object) -> "Theme":
        """Normalize a raw theme value, falling back to the default theme."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            cleaned = value.strip().lower()
            for theme in cls:
                if theme.value == cleaned:
                    return theme
        return DEFAULT_THEME

    @property
    def background_style(self) -> str:
        """Artistic style used when generating a background for this theme."""
        return _BACKGROUND_STYLES[self]


DEFAULT_THEME = Theme.LOVE

_BACKGROUND_STYLES: dict[Theme, str] = {
    Theme.ADVENTURE: (
        "adventurous outdoor scenery with mountains, forests, soft watercolor style"
    ),
    Theme.COZY: (
        "warm cozy interior, soft blankets, warm lighting, gentle pastel watercolor"
    ),
    Theme.CELEBRATION: (
        "festive confetti, balloons, sparkles, joyful pastel watercolor style"
    ),
    Theme.NATURE: (
        "gentle nature scene, flowers, leaves, butterflies, soft botanical watercolor"
    ),
    Theme.FAMILY: (
        "warm family home atmosphere, soft hearts, gentle embrace motifs, watercolor"
    ),
    Theme.MILESTONE: (
        "celebratory stars, achievement ribbons, gentle golden accents, watercolor"
    ),
    Theme.PLAYFUL: (
        "fun toys, colorful blocks, playful patterns, cheerful watercolor style"
    ),
    Theme.LOVE: "soft hearts, gentle pink and red tones, romantic watercolor florals",
    Theme.GROWTH: "growing plants, seedlings, gentle green sprouts, nature watercolor",
    Theme.SERENE: "calm clouds, peaceful sky, soft blue tones, dreamy watercolor style",
}
