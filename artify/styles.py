"""Styles module for the Artify application.

This module defines the art style presets offered to the user. Each preset's
prompt is sent to the art transform service as the style description.
"""

import logging
from typing import Dict, List, Any, Tuple

# Set up logging
logger = logging.getLogger(__name__)


class StylePreset:
    """Defines a preset art style."""

    def __init__(self, id: str, name: str, category: str, prompt: str, usage_count: int = 0):
        """Initialize a style preset.

        Args:
            id: Unique identifier of the preset
            name: Display name
            category: Category the preset is listed under
            prompt: Style instructions passed to the transform service
            usage_count: Ranking weight for display order
        """
        self.id = id
        self.name = name
        self.category = category
        self.prompt = prompt
        self.usage_count = usage_count

    def to_dict(self) -> Dict[str, Any]:
        """Convert the style preset to a dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "prompt": self.prompt,
            "usage_count": self.usage_count,
        }

    def __repr__(self) -> str:
        return f"StylePreset(id={self.id!r}, name={self.name!r}, category={self.category!r})"


PAINTING = "Painting Styles"
DRAWING = "Drawing & Sketch"
ANIME = "Anime & Manga"
VIDEO_GAME = "Video Game Art"
PHOTOGRAPHY = "Photography Effects"

# Display order of the categories
ART_STYLE_CATEGORIES: Tuple[str, ...] = (PAINTING, DRAWING, ANIME, VIDEO_GAME, PHOTOGRAPHY)

# Define the standard art style presets
ART_STYLES: Tuple[StylePreset, ...] = (
    # Painting styles
    StylePreset(
        id="impasto-oil",
        name="Impasto Oil",
        category=PAINTING,
        prompt="Repaint this photo as a thick impasto oil painting with heavy, textured brush strokes and rich, saturated color.",
        usage_count=1250,
    ),
    StylePreset(
        id="acrylic-pop",
        name="Acrylic Pop",
        category=PAINTING,
        prompt="Turn this photo into a bold pop-art acrylic painting with flat bright colors and strong graphic outlines.",
        usage_count=980,
    ),
    StylePreset(
        id="renaissance-oil",
        name="Renaissance Oil",
        category=PAINTING,
        prompt="Render this photo as a Renaissance oil portrait with chiaroscuro lighting, warm varnished tones and fine glazing.",
        usage_count=870,
    ),
    StylePreset(
        id="chinese-ink-wash",
        name="Chinese Ink Wash",
        category=PAINTING,
        prompt="Paint this photo as a traditional Chinese ink wash painting with flowing black ink, soft gradients and empty space.",
        usage_count=640,
    ),
    StylePreset(
        id="watercolor",
        name="Watercolor",
        category=PAINTING,
        prompt="Transform this photo into a delicate watercolor painting with soft bleeding edges and translucent washes on paper.",
        usage_count=1420,
    ),

    # Drawing & sketch
    StylePreset(
        id="graphite-portrait",
        name="Graphite Portrait",
        category=DRAWING,
        prompt="Redraw this photo as a realistic graphite pencil portrait with careful shading and visible paper grain.",
        usage_count=1100,
    ),
    StylePreset(
        id="charcoal-drama",
        name="Charcoal Drama",
        category=DRAWING,
        prompt="Redraw this photo as a dramatic charcoal drawing with deep blacks, smudged shadows and expressive strokes.",
        usage_count=760,
    ),
    StylePreset(
        id="technical-ink",
        name="Technical Ink",
        category=DRAWING,
        prompt="Convert this photo into a precise technical ink drawing with clean linework and cross-hatched shading.",
        usage_count=420,
    ),
    StylePreset(
        id="colored-pencil",
        name="Colored Pencil",
        category=DRAWING,
        prompt="Redraw this photo with colored pencils, layered hatching and soft, slightly grainy color.",
        usage_count=690,
    ),
    StylePreset(
        id="chalk-pastel",
        name="Chalk Pastel",
        category=DRAWING,
        prompt="Recreate this photo as a chalk pastel drawing on toned paper with soft blended colors.",
        usage_count=380,
    ),

    # Anime & manga
    StylePreset(
        id="studio-ghibli",
        name="Studio Ghibli",
        category=ANIME,
        prompt="Transform this photo into a hand-painted Studio Ghibli style anime scene with soft light and lush color.",
        usage_count=2300,
    ),
    StylePreset(
        id="manga-style",
        name="Manga Style",
        category=ANIME,
        prompt="Redraw this photo as a black and white manga panel with screentone shading and crisp ink lines.",
        usage_count=1500,
    ),
    StylePreset(
        id="anime-portrait",
        name="Anime Portrait",
        category=ANIME,
        prompt="Turn this photo into a modern anime portrait with large expressive eyes, cel shading and clean outlines.",
        usage_count=1850,
    ),
    StylePreset(
        id="chibi-art",
        name="Chibi Art",
        category=ANIME,
        prompt="Redraw the subject of this photo as a cute chibi character with a big head, small body and pastel colors.",
        usage_count=900,
    ),
    StylePreset(
        id="kawaii-style",
        name="Kawaii Style",
        category=ANIME,
        prompt="Make this photo kawaii: pastel palette, sparkles, rounded shapes and an adorable cartoon look.",
        usage_count=720,
    ),
    StylePreset(
        id="shoujo-style",
        name="Shoujo Style",
        category=ANIME,
        prompt="Redraw this photo in shoujo manga style with sparkling eyes, floral accents and soft romantic tones.",
        usage_count=560,
    ),

    # Video game art
    StylePreset(
        id="pixel-art",
        name="Pixel Art",
        category=VIDEO_GAME,
        prompt="Convert this photo into 16-bit pixel art with a limited color palette and crisp square pixels.",
        usage_count=1650,
    ),
    StylePreset(
        id="3d-render",
        name="3D Render",
        category=VIDEO_GAME,
        prompt="Recreate this photo as a polished 3D render with smooth stylised materials and studio lighting.",
        usage_count=1200,
    ),
    StylePreset(
        id="fantasy-art",
        name="Fantasy Art",
        category=VIDEO_GAME,
        prompt="Turn this photo into epic fantasy game concept art with magical lighting and a painterly finish.",
        usage_count=1050,
    ),
    StylePreset(
        id="minecraft-style",
        name="Minecraft Style",
        category=VIDEO_GAME,
        prompt="Rebuild this photo in a blocky voxel style like Minecraft, made of cubes with pixel textures.",
        usage_count=830,
    ),
    StylePreset(
        id="fortnite-style",
        name="Fortnite Style",
        category=VIDEO_GAME,
        prompt="Restyle this photo like a Fortnite character render with vibrant colors and a cartoony 3D look.",
        usage_count=610,
    ),

    # Photography effects
    StylePreset(
        id="vintage-film",
        name="Vintage Film",
        category=PHOTOGRAPHY,
        prompt="Make this photo look like it was shot on vintage 35mm film with warm faded color and fine grain.",
        usage_count=1380,
    ),
    StylePreset(
        id="hdr-effect",
        name="HDR Effect",
        category=PHOTOGRAPHY,
        prompt="Apply a strong HDR effect to this photo with boosted local contrast and detail in highlights and shadows.",
        usage_count=640,
    ),
    StylePreset(
        id="black-and-white",
        name="Black & White",
        category=PHOTOGRAPHY,
        prompt="Convert this photo to a rich black and white photograph with deep contrast and smooth tonal range.",
        usage_count=1150,
    ),
    StylePreset(
        id="film-noir",
        name="Film Noir",
        category=PHOTOGRAPHY,
        prompt="Restyle this photo as a 1940s film noir still with hard shadows, high contrast monochrome and moody light.",
        usage_count=700,
    ),
    StylePreset(
        id="double-exposure",
        name="Double Exposure",
        category=PHOTOGRAPHY,
        prompt="Create a double exposure of this photo blended with a forest landscape inside the subject's silhouette.",
        usage_count=520,
    ),
    StylePreset(
        id="vintage-sepia",
        name="Vintage Sepia",
        category=PHOTOGRAPHY,
        prompt="Give this photo an antique sepia tone with soft vignetting and aged paper texture.",
        usage_count=610,
    ),
    StylePreset(
        id="polaroid-instant",
        name="Polaroid Instant",
        category=PHOTOGRAPHY,
        prompt="Make this photo look like a Polaroid instant print with soft color shifts and a washed-out glow.",
        usage_count=880,
    ),
    StylePreset(
        id="tilt-shift-miniature",
        name="Tilt-Shift Miniature",
        category=PHOTOGRAPHY,
        prompt="Apply a tilt-shift miniature effect to this photo with a narrow band of focus and saturated toy-like color.",
        usage_count=330,
    ),
    StylePreset(
        id="cyanotype-blue",
        name="Cyanotype Blue",
        category=PHOTOGRAPHY,
        prompt="Render this photo as a cyanotype print in Prussian blue and white with a handmade chemical texture.",
        usage_count=290,
    ),
)

_STYLES_BY_ID = {style.id: style for style in ART_STYLES}


def get_categories() -> List[str]:
    """Get the style categories in display order."""
    return list(ART_STYLE_CATEGORIES)


def get_styles_by_category(category: str) -> List[StylePreset]:
    """Get the presets of a category, most used first.

    Args:
        category: Category name

    Returns:
        Presets sorted by descending usage count (an empty list for unknown categories)
    """
    members = [style for style in ART_STYLES if style.category == category]
    return sorted(members, key=lambda style: style.usage_count, reverse=True)


def get_style_preset(style_id: str) -> StylePreset:
    """Get a style preset by id.

    The display name is accepted as well.

    Args:
        style_id: The id (or name) of the style preset

    Returns:
        The style preset

    Raises:
        ValueError: If the style preset is not found
    """
    if style_id in _STYLES_BY_ID:
        return _STYLES_BY_ID[style_id]

    # Normalize the name (lowercase, remove spaces)
    normalized = style_id.lower().replace(' & ', '-and-').replace(' ', '-')
    if normalized in _STYLES_BY_ID:
        return _STYLES_BY_ID[normalized]

    raise ValueError(f"Style preset '{style_id}' not found")


def find_style_preset(style_id: str):
    """Like :func:`get_style_preset` but returns None for unknown ids."""
    try:
        return get_style_preset(style_id)
    except ValueError:
        return None


def get_available_styles() -> List[str]:
    """Get the ids of all style presets, grouped by category in display order."""
    return [style.id for category in ART_STYLE_CATEGORIES for style in get_styles_by_category(category)]


def search_styles(text: str) -> List[StylePreset]:
    """Find presets whose name or prompt mentions the given text.

    Args:
        text: Case-insensitive search text

    Returns:
        Matching presets, most used first
    """
    needle = text.strip().lower()
    if not needle:
        return []
    matches = [
        style for style in ART_STYLES
        if needle in style.name.lower() or needle in style.prompt.lower()
    ]
    return sorted(matches, key=lambda style: style.usage_count, reverse=True)
