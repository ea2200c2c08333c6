"""
Catalog copy for one product (all variants sharing a handle): title, HTML body, SEO fields, tags,
Google category, plus the metal and quality display names used as option values.
"""

import math
import re
from collections.abc import Sequence

from . import fields
from .models import Rulebook, Scenario, VariantSeed
from .tables import ct_str, title_case, to_fixed2

FIXED_METALS = "in 14K, 18K, and 950"
SEO_DESCRIPTION_LIMIT = 160

METAL_NAMES = {
    "14W": "14KT White Gold",
    "14Y": "14KT Yellow Gold",
    "14R": "14KT Rose Gold",
    "18W": "18KT White Gold",
    "18Y": "18KT Yellow Gold",
    "18R": "18KT Rose Gold",
    "PLT": "Platinum",
}

QUALITY_LABELS = {
    "FG": "F-G/VS (Excellent)",
    "GH": "G-H/VS (Very Good)",
    "HI": "H-I/SI (Good)",
    "IJ": "I-J/SI (Fair)",
    "VS1": "VS1 (Very Good)",
    "VS2": "VS2 (Good)",
    "SI1": "SI1 (Fair)",
    "SI2": "SI2 (Fair)",
}

GOOGLE_CATEGORIES = (
    (("earring",), "Apparel & Accessories > Jewelry > Earrings"),
    (("ring",), "Apparel & Accessories > Jewelry > Rings"),
    (("bracelet",), "Apparel & Accessories > Jewelry > Bracelets"),
    (("pendant", "necklace"), "Apparel & Accessories > Jewelry > Necklaces"),
)
DEFAULT_GOOGLE_CATEGORY = "Apparel & Accessories > Jewelry"

IRREGULAR_PLURALS = {"ruby": "rubies", "diamond": "diamonds", "sapphire": "sapphires", "emerald": "emeralds"}
HTML_TAG = re.compile(r"<[^>]*>")


def translate_metal(code: str) -> str:
    return METAL_NAMES.get(code.strip().upper(), code)


def translate_quality(code: str) -> str:
    return QUALITY_LABELS.get(code.strip().upper(), code)


def google_category(category: str) -> str:
    lowered = category.lower()
    for keywords, label in GOOGLE_CATEGORIES:
        if any(keyword in lowered for keyword in keywords):
            return label
    return DEFAULT_GOOGLE_CATEGORY


def pluralize(stone_type: str) -> str:
    lowered = stone_type.strip().lower()
    return IRREGULAR_PLURALS.get(lowered, f"{lowered}s")


def type_qualifier(rulebook: Rulebook) -> str:
    return "natural" if rulebook is Rulebook.NATURAL else "lab grown"


def total_carat_weight(seed: VariantSeed) -> float:
    if seed.scenario is Scenario.UNIQUE_CENTER and seed.center_carats is not None:
        return round(seed.center_carats + seed.record.side_carat_sum(), 4)
    return seed.record.number(fields.TOTAL_CARAT) or 0.0


def total_carat_label(seed: VariantSeed) -> str:
    return ct_str(total_carat_weight(seed), seed.center_carats)


def carat_range(seeds: Sequence[VariantSeed]) -> str:
    weights = [total_carat_weight(seed) for seed in seeds]
    low, high = min(weights), max(weights)
    if low == high:
        return f"{low:.2f} ct"
    return f"{low:.2f}-{high:.2f} ct"


def ordered_shapes(seeds: Sequence[VariantSeed]) -> list[str]:
    """Center and side shapes across all variants: Round first, the rest A to Z."""
    shapes: set[str] = set()
    for record in {id(seed.record): seed.record for seed in seeds}.values():
        if record.center_shape:
            shapes.add(title_case(record.center_shape))
        for group in record.side_groups():
            shapes.add(title_case(group.shape))
    return sorted(shapes, key=lambda shape: (shape != "Round", shape))


def stone_types(seeds: Sequence[VariantSeed]) -> str:
    types: list[str] = []
    for record in {id(seed.record): seed.record for seed in seeds}.values():
        candidates = [record.value(fields.CENTER_TYPE)] + [group.stone_type for group in record.side_groups()]
        for candidate in candidates:
            if candidate and pluralize(candidate) not in types:
                types.append(pluralize(candidate))
    return " and ".join(types) or "diamonds"


def band_width(seeds: Sequence[VariantSeed]) -> float:
    return seeds[0].record.number(fields.BAND_WIDTH) or 0.0


def build_title(seeds: Sequence[VariantSeed]) -> str:
    first = seeds[0]
    subcategory = first.record.value(fields.SUBCATEGORY, "Jewelry")
    if first.scenario is Scenario.NO_STONES:
        width = band_width(seeds)
        if width > 0:
            return f"{width:.1f} MM - {subcategory} - {FIXED_METALS}"
        return f"{subcategory} - {FIXED_METALS}"

    shapes = " & ".join(ordered_shapes(seeds))
    cut = f"{shapes} Cut " if shapes else ""
    natural = "Natural " if first.rulebook is Rulebook.NATURAL else ""
    return f"{carat_range(seeds)} - {cut}{natural}{stone_types(seeds)} - {subcategory}"


def _no_stones_body(seeds: Sequence[VariantSeed], title: str) -> str:
    record = seeds[0].record
    subcategory = record.value(fields.SUBCATEGORY, "Plain Wedding Bands")
    lowered = subcategory.lower()
    parts = [
        f"<p><strong>{title}</strong></p>",
        f"<p>Experience true luxury with our {title}. This {lowered} is expertly crafted with precision and "
        "attention to detail. Select your choice of precious metal between 14 Karat, 18 Karat Yellow, White "
        "and Rose Gold, or Platinum.</p>",
        "<p>Perfect for everyday wear or special occasions.</p>",
    ]
    width = band_width(seeds)
    if width > 0:
        parts.append(f"<p><strong>{to_fixed2(width)} mm {subcategory} in 14KT, 18KT &amp; Platinum</strong></p>")
        parts.append(f"<p>Reward yourself with our {to_fixed2(width)} mm {lowered} in 14KT, 18KT, and Platinum.</p>")
    return "<div>" + "".join(parts) + "</div>"


def _stone_lines(seeds: Sequence[VariantSeed]) -> list[str]:
    first = seeds[0]
    qualifier = type_qualifier(first.rulebook)
    if first.scenario is Scenario.REPEATING:
        record = first.record
        shape = (record.center_shape or record.primary_side_shape()).lower()
        stones = pluralize(record.value(fields.CENTER_TYPE, "diamond"))
        weights = sorted({w for w in (seed.record.number(fields.TOTAL_CARAT) for seed in seeds) if w and w > 0})
        return [
            f"<p><strong>{to_fixed2(weight)}:</strong> <span>{shape} cut {qualifier} {stones} weighing "
            f"{to_fixed2(weight)} carat</span></p>"
            for weight in weights
        ]

    lines = []
    if first.scenario is Scenario.UNIQUE_CENTER:
        lines.append("<p><strong>Center:</strong> <span>Select center from the options above</span></p>")
    for index, group in enumerate(first.record.side_groups(), start=1):
        lines.append(
            f"<p><strong>Side Stones {index}:</strong> <span>{group.stones} {group.shape.lower()} cut {qualifier} "
            f"{pluralize(group.stone_type)} weighing {to_fixed2(group.carats)} carat</span></p>"
        )
    return lines


def _marketing_copy(seeds: Sequence[VariantSeed]) -> str:
    first = seeds[0]
    qualifier = type_qualifier(first.rulebook)
    ct_range = carat_range(seeds)
    shape_names = ordered_shapes(seeds)
    shapes = " & ".join(shape_names) or "Round"
    stones = stone_types(seeds)
    subcategory = first.record.value(fields.SUBCATEGORY, "Jewelry")
    lowered = subcategory.lower()

    if "Round" in shape_names and "Princess" in shape_names:
        sparkle = (
            "The Round cut showcases a dazzling array of facets, while the Princess cut exudes a captivating "
            "brilliance, together creating a stunning combination of elegance and radiance."
        )
    else:
        sparkle = f"Our {shapes} cut showcases a dazzling array of facets, creating stunning brilliance and timeless beauty."

    if first.rulebook is Rulebook.LAB_GROWN:
        ethics = f"Embrace eco-conscious luxury with our lab-grown {stones}: ethically sourced, conflict-free and environmentally friendly."
    else:
        ethics = f"Embrace luxury with our natural {stones}: ethically sourced and conflict-free."

    bullets = [
        f"Captivating {shapes} Cut: Our {qualifier} {stones}, available in {shapes} cut, ranging from {ct_range}, "
        "embody timeless beauty and brilliance.",
        f"Sparkling Elegance: {sparkle}",
        f"Ethical &amp; Sustainable: {ethics}",
        f"Customizable Perfection: Personalize your dream {lowered} with a range of {stones} sizes and metal options, "
        "including 14K and 18K White Gold, Yellow Gold, Rose Gold, or Platinum.",
        f"Exquisite Craftsmanship: Each {lowered} is meticulously handcrafted by our skilled artisans.",
        f"Timeless Elegance: This exquisite {lowered} captures timeless elegance for generations to come.",
    ]
    paragraph = (
        f"<p><span>Experience a true luxury with our {ct_range} {shapes} Cut {qualifier} {stones} - {subcategory}. "
        f"This {subcategory} is crafted with {ct_range} {qualifier} {stones}. Select your choice of precious metal "
        "between 14 Karat, 18 Karat Yellow, White and Rose Gold OR Platinum.</span></p>"
    )
    return paragraph + "<ul>" + "".join(f"<li>{bullet}</li>" for bullet in bullets) + "</ul>"


def build_body_html(seeds: Sequence[VariantSeed], title: str | None = None) -> str:
    title = title or build_title(seeds)
    if seeds[0].scenario is Scenario.NO_STONES:
        return _no_stones_body(seeds, title)
    return "<div>" + f"<p><strong>{title}</strong></p>" + "".join(_stone_lines(seeds)) + _marketing_copy(seeds) + "</div>"


def build_seo(title: str, body_html: str) -> tuple[str, str]:
    text = re.sub(r"\s+", " ", HTML_TAG.sub(" ", body_html)).strip()
    if len(text) > SEO_DESCRIPTION_LIMIT:
        text = text[: SEO_DESCRIPTION_LIMIT - 3].rstrip() + "..."
    return title, text


def carat_bucket_tags(low: float, high: float) -> list[str]:
    start = math.floor(low)
    end = max(start + 1, math.ceil(high))
    return [f"tcw_{bucket:.2f} CT - {bucket + 1:.2f} CT" for bucket in range(start, end)]


def build_tags(seeds: Sequence[VariantSeed]) -> list[str]:
    first = seeds[0]
    record = first.record
    category = record.value(fields.CATEGORY, "Jewelry")
    subcategory = record.value(fields.SUBCATEGORY, "Piece")

    tags = [category, f"{category}_{subcategory}"]
    tags.extend(f"shape_{shape.lower()}" for shape in ordered_shapes(seeds))
    if first.scenario is not Scenario.NO_STONES:
        weights = [total_carat_weight(seed) for seed in seeds]
        tags.extend(carat_bucket_tags(min(weights), max(weights)))

    raw_tags = record.value(fields.TAGS)
    tags.extend(
        tag.strip() for tag in raw_tags.split(",") if tag.strip() and not tag.strip().lower().startswith("shape_")
    )
    return list(dict.fromkeys(tags))
