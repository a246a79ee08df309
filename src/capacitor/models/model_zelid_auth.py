# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Zelid credential model.

The dashboard receives the wallet credential as an opaque ``zelidauth``
string in one of two wire formats; node endpoints only accept the JSON
object form. This model is the single canonical shape used internally.
"""

from __future__ import annotations

import json

from pydantic import BaseModel, ConfigDict, Field


class ModelZelidAuth(BaseModel):
    """Canonical wallet credential.

    Never log instances of this model; ``__repr__`` hides the signature.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    zelid: str = Field(..., min_length=1)
    signature: str = Field(..., min_length=1, repr=False)
    login_phrase: str = Field(..., min_length=1, repr=False)

    def header_value(self) -> str:
        """JSON-object form expected in the node ``zelidauth`` header."""
        return json.dumps(
            {
                "zelid": self.zelid,
                "signature": self.signature,
                "loginPhrase": self.login_phrase,
            },
            separators=(",", ":"),
        )


__all__ = ["ModelZelidAuth"]
