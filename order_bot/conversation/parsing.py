"""
Deterministic parsing of inbound text.

Nothing here touches the session: these helpers only classify and split the
raw message body.
"""

import re
from typing import List, Optional

from ..models import InboundMessage
from .states import COMMAND_KINDS, Command, InputKind


SELECTION_PATTERN = re.compile(r"^[\d,\s]+$")
TOKEN_SPLIT_PATTERN = re.compile(r"[,\s]+")

COMMAND_ALIASES = {
    "menu": Command.MENU,
    "menú": Command.MENU,
    "carrito": Command.CART,
    "limpiar": Command.CLEAR,
    "cancelar": Command.CANCEL,
    "finalizar": Command.CHECKOUT,
}


def normalize(text: Optional[str]) -> str:
    return (text or "").strip().lower()


def match_command(text: Optional[str]) -> Optional[Command]:
    """Return the command spelled by ``text`` (case-insensitive, trimmed), if any."""
    return COMMAND_ALIASES.get(normalize(text))


def is_selection(text: Optional[str]) -> bool:
    """True for messages made only of digits, commas and whitespace (at least one digit)."""
    stripped = (text or "").strip()
    return bool(stripped) and bool(SELECTION_PATTERN.match(stripped)) and any(c.isdigit() for c in stripped)


def parse_selection(text: Optional[str]) -> List[str]:
    """
    Split a selection message into product id tokens.

    Tokens that do not parse as integers are dropped silently. Numeric
    tokens are normalized ("007" -> "7") and returned in message order,
    repeats included.

    Examples:
        "1,2,1"   -> ["1", "2", "1"]
        "3 , 4"   -> ["3", "4"]
        "1,,x"    -> ["1"]
    """
    tokens = []
    for raw in TOKEN_SPLIT_PATTERN.split((text or "").strip()):
        if not raw:
            continue
        try:
            tokens.append(str(int(raw)))
        except ValueError:
            continue
    return tokens


def classify(message: InboundMessage, awaiting_proof: bool = False) -> InputKind:
    """
    Classify an inbound message without looking at the session.

    Commands take precedence, then digit-only selections, then image
    attachments; everything else is plain text. With ``awaiting_proof``
    (the session expects a proof-of-payment picture) an image outranks a
    digit caption.
    """
    command = match_command(message.body)
    if command is not None:
        return COMMAND_KINDS[command]
    if awaiting_proof and message.has_image:
        return InputKind.IMAGE
    if is_selection(message.body):
        return InputKind.SELECTION
    if message.has_image:
        return InputKind.IMAGE
    return InputKind.TEXT
