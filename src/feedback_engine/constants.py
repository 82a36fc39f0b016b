"""Survey constants shared across the SDK.

These values are referenced by the section model, the validation engine and
the submission builder.  The display strings mirror the copy used by the
respondent-facing app (Brazilian Portuguese).
"""

# Question categories.  Product sections draw from "product"; the two
# general sections each have their own category.
CATEGORY_PRODUCT = "product"
CATEGORY_EXPERIMENTAI = "experimentai"
CATEGORY_DELIVERY = "delivery"

CATEGORIES: tuple[str, ...] = (
    CATEGORY_PRODUCT,
    CATEGORY_EXPERIMENTAI,
    CATEGORY_DELIVERY,
)

# Section ids.  Product sections are numbered by their position in the
# edition's product list: product-0, product-1, ...
PRODUCT_SECTION_PREFIX = "product-"
EXPERIMENTAI_SECTION_ID = "experimentai"
DELIVERY_SECTION_ID = "delivery"

# Labels for the two fixed sections.
GENERAL_SECTION_LABELS: dict[str, str] = {
    EXPERIMENTAI_SECTION_ID: "Sobre a Experimentaí",
    DELIVERY_SECTION_ID: "Sobre a Entrega",
}

# Error shown for an unanswered required question.
REQUIRED_FIELD_MESSAGE = "Este campo é obrigatório"

# Badge attached to every completed payload.
DEFAULT_COMPLETION_BADGE = "Testador Expert da Experimentaí"

# Prompt fragment that gets the edition name appended (e.g. the theme
# curation question in the experimentai section).
EDITION_THEME_MARKER = "Curadoria do tema"

# Progress header copy, checked in order: (upper bound, emoji, message).
# The first entry whose bound is strictly greater than the percentage wins;
# 0% and 100% are handled separately.
MOTIVATION_START = ("👋", "Vamos começar!")
MOTIVATION_DONE = ("🎉", "Completo!")
MOTIVATION_STAGES: list[tuple[float, str, str]] = [
    (25, "🚀", "Ótimo começo!"),
    (50, "💪", "Mandando bem!"),
    (75, "🔥", "Está voando!"),
    (100, "⭐", "Quase lá!"),
]
