"""
Localized pricing messages.

Templates are keyed by locale. Lookup tries the exact locale, then its
language ("fr_CA" -> "fr"), then FALLBACK_LOCALE.
"""
from typing import Optional

FALLBACK_LOCALE = "en_US"

GENERAL_FAILURE = "general_failure"
ITEM_UNAVAILABLE = "item_unavailable"

MESSAGES: dict[str, dict[str, str]] = {
    "en_US": {
        GENERAL_FAILURE: "We couldn't retrieve prices for your cart. Try again in a few minutes.",
        ITEM_UNAVAILABLE: "No price is available for the product with SKU {sku}.",
    },
    "fr": {
        GENERAL_FAILURE: "Nous n'avons pas pu récupérer les prix de votre panier. Réessayez dans quelques minutes.",
        ITEM_UNAVAILABLE: "Aucun prix n'est disponible pour le produit portant le SKU {sku}.",
    },
}


def resolve_locale(locale: Optional[str]) -> str:
    """Map a requested locale onto a locale present in MESSAGES."""
    if not locale:
        return FALLBACK_LOCALE
    normalized = locale.replace("-", "_")
    if normalized in MESSAGES:
        return normalized
    language = normalized.split("_")[0].lower()
    if language in MESSAGES:
        return language
    for key in MESSAGES:
        if key.split("_")[0].lower() == language:
            return key
    return FALLBACK_LOCALE


def render(key: str, locale: Optional[str] = None, **params) -> str:
    """Render a message template in the requested locale."""
    template = MESSAGES[resolve_locale(locale)][key]
    return template.format(**params)


def general_failure(locale: Optional[str] = None) -> str:
    return render(GENERAL_FAILURE, locale)


def item_unavailable(sku: str, locale: Optional[str] = None) -> str:
    return render(ITEM_UNAVAILABLE, locale, sku=sku)
