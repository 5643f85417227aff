"""Prompt construction for the financial analysis request.

The canonical payload is embedded verbatim as JSON between
``BEGIN_FINANCIAL_DATA_JSON`` / ``END_FINANCIAL_DATA_JSON`` markers, followed
by the JSON shape the model must answer with.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

BEGIN = "BEGIN_FINANCIAL_DATA_JSON\n"
END = "\nEND_FINANCIAL_DATA_JSON"

_OUTPUT_SHAPE = {
    "cashFlowForecast": {
        "month1": {"inflow": 0, "outflow": 0, "netFlow": 0, "cumulativeBalance": 0},
        "month2": {"inflow": 0, "outflow": 0, "netFlow": 0, "cumulativeBalance": 0},
        "month3": {"inflow": 0, "outflow": 0, "netFlow": 0, "cumulativeBalance": 0},
    },
    "anomalies": [
        {
            "entryId": "string",
            "type": "duplicate|outlier|fraud_risk",
            "issue": "description",
            "severity": "low|medium|high",
        }
    ],
    "procurementSuggestions": [
        {"category": "string", "suggestion": "string", "potentialSavings": 0, "implementation": "string"}
    ],
    "kpis": {"grossMargin": 0, "netBurnRate": 0, "dso": 0, "dpo": 0},
    "dataQuality": {"completeness": 0, "accuracy": 0, "recommendations": ["string"]},
}


def serialize_payload(payload: Mapping[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, indent=2)


def build_system_instructions() -> str:
    return (
        "You are an expert financial analyst and supply-chain consultant. Analyze the "
        "provided financial dataset and answer with JSON only, conforming to the requested "
        "output shape."
    )


def build_user_content(payload: Mapping[str, Any]) -> str:
    """Build the user message: required analyses, the data block, the output shape."""

    return (
        "Required analysis:\n"
        "1. 90-day cash-flow projection with monthly breakdown\n"
        "2. Anomalies or potential fraud indicators in payments/ledger entries\n"
        "3. Procurement optimizations that reduce working capital usage\n"
        "4. KPIs: gross margin, net burn rate, days sales outstanding (DSO), "
        "days payable outstanding (DPO)\n"
        "5. Data validation and error correction recommendations\n\n"
        f"{BEGIN}{serialize_payload(payload)}{END}\n\n"
        "Output format (JSON only):\n"
        f"{json.dumps(_OUTPUT_SHAPE, indent=2)}"
    )


def build_messages(payload: Mapping[str, Any]) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": build_system_instructions()},
        {"role": "user", "content": build_user_content(payload)},
    ]


__all__ = [
    "BEGIN",
    "END",
    "build_messages",
    "build_system_instructions",
    "build_user_content",
    "serialize_payload",
]
