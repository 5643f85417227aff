"""Record classification into the four canonical categories.

Classification is an ordered cascade, first match wins:

1. An explicit ``type`` tag (``"invoice"``, ``"bill"``, ``"payment"``, ...).
2. Field-name heuristics evaluated as an ordered rule table; invoice-like
   names are checked before payment-like names, before balance-like names.
3. Default to :attr:`Category.EXPENSE`.

The default is a known heuristic limitation: balance- or payment-like records
without recognizable field names land in ``expenses``.
"""

from __future__ import annotations

from collections.abc import Mapping

from .models import Category, RawRecord

TYPE_TAGS: Mapping[str, Category] = {
    "invoice": Category.INVOICE,
    "bill": Category.INVOICE,
    "payment": Category.PAYMENT,
    "transaction": Category.PAYMENT,
    "expense": Category.EXPENSE,
    "balance": Category.BALANCE,
}

# Priority order matters: the first category whose keywords match any field
# name wins.
FIELD_NAME_RULES: tuple[tuple[Category, frozenset[str]], ...] = (
    (Category.INVOICE, frozenset({"invoice", "bill", "revenue"})),
    (Category.PAYMENT, frozenset({"payment", "transaction"})),
    (Category.BALANCE, frozenset({"balance", "account"})),
)

DEFAULT_CATEGORY = Category.EXPENSE


def _from_type_tag(record: RawRecord) -> Category | None:
    tag = record.get("type")
    if tag is None or tag == "":
        return None
    return TYPE_TAGS.get(str(tag).strip().lower())


def _from_field_names(record: RawRecord) -> Category | None:
    keys = [str(k).lower() for k in record]
    for category, keywords in FIELD_NAME_RULES:
        if any(word in key for key in keys for word in keywords):
            return category
    return None


def classify(record: RawRecord) -> Category:
    """Infer the category of a single raw record.

    Pure and total: the result depends only on the record's fields and the
    function never raises.
    """

    return _from_type_tag(record) or _from_field_names(record) or DEFAULT_CATEGORY


__all__ = ["DEFAULT_CATEGORY", "FIELD_NAME_RULES", "TYPE_TAGS", "classify"]
