"""
Conversation Transition Table.

This module defines the dispatch rules of the ordering conversation as data:
every inbound message is first classified into an ``InputKind`` (the only
session input is whether a proof-of-payment image is awaited), and the
pair (current state, input kind) is looked up in ``TRANSITIONS`` to obtain
the action to run and its default next state.

Precedence:
-----------
1. Commands (menu, carrito, limpiar, cancelar, finalizar) win in every state.
2. DELIVERY_INFO and PAYMENT_METHOD consume every other input themselves,
   including digit-only text, because "1"/"2" are menu options there and
   the address is free text.
3. PAYMENT_CONFIRMATION reacts to an image attachment (proof of payment),
   even when its caption is digit-only.
4. Digit-only text selects products in every remaining state.
5. Anything else greets the customer.

A transition's ``next_state`` is the state the session moves to when the
action completes normally. ``None`` means "leave the state unchanged".
Actions whose outcome depends on the input (e.g. a checkout with an empty
cart) may override it at run time.
"""

from enum import Enum
from typing import Dict, NamedTuple, Optional, Tuple

from ..models import ConversationState


class Command(str, Enum):
    MENU = "menu"
    CART = "carrito"
    CLEAR = "limpiar"
    CANCEL = "cancelar"
    CHECKOUT = "finalizar"


class InputKind(str, Enum):
    """What an inbound message is, before the session state is considered."""
    MENU = "menu"
    CART = "cart"
    CLEAR = "clear"
    CANCEL = "cancel"
    CHECKOUT = "checkout"
    SELECTION = "selection"  # digits, commas and whitespace only
    IMAGE = "image"  # media attachment with an image/* content type
    TEXT = "text"


class Action(str, Enum):
    SHOW_MENU = "show_menu"
    SHOW_CART = "show_cart"
    CLEAR_CART = "clear_cart"
    CANCEL_ORDER = "cancel_order"
    START_CHECKOUT = "start_checkout"
    CHOOSE_DELIVERY = "choose_delivery"
    CHOOSE_PAYMENT = "choose_payment"
    CONFIRM_PAYMENT = "confirm_payment"
    SELECT_PRODUCTS = "select_products"
    WELCOME = "welcome"


class Transition(NamedTuple):
    action: Action
    next_state: Optional[ConversationState]


COMMAND_KINDS = {
    Command.MENU: InputKind.MENU,
    Command.CART: InputKind.CART,
    Command.CLEAR: InputKind.CLEAR,
    Command.CANCEL: InputKind.CANCEL,
    Command.CHECKOUT: InputKind.CHECKOUT,
}

_COMMAND_TRANSITIONS: Dict[InputKind, Transition] = {
    InputKind.MENU: Transition(Action.SHOW_MENU, ConversationState.BROWSING_PRODUCTS),
    InputKind.CART: Transition(Action.SHOW_CART, None),
    InputKind.CLEAR: Transition(Action.CLEAR_CART, ConversationState.MAIN_MENU),
    InputKind.CANCEL: Transition(Action.CANCEL_ORDER, ConversationState.MAIN_MENU),
    InputKind.CHECKOUT: Transition(Action.START_CHECKOUT, ConversationState.DELIVERY_INFO),
}

_DEFAULT_TRANSITIONS: Dict[InputKind, Transition] = {
    InputKind.SELECTION: Transition(Action.SELECT_PRODUCTS, ConversationState.BROWSING_PRODUCTS),
    InputKind.IMAGE: Transition(Action.WELCOME, ConversationState.MAIN_MENU),
    InputKind.TEXT: Transition(Action.WELCOME, ConversationState.MAIN_MENU),
}

# States that consume every non-command input with their own handler
_STATE_HANDLERS: Dict[ConversationState, Transition] = {
    ConversationState.DELIVERY_INFO: Transition(Action.CHOOSE_DELIVERY, None),
    ConversationState.PAYMENT_METHOD: Transition(Action.CHOOSE_PAYMENT, None),
}


def _build_transitions() -> Dict[Tuple[ConversationState, InputKind], Transition]:
    table: Dict[Tuple[ConversationState, InputKind], Transition] = {}
    for state in ConversationState:
        for kind in InputKind:
            if kind in _COMMAND_TRANSITIONS:
                table[(state, kind)] = _COMMAND_TRANSITIONS[kind]
            elif state in _STATE_HANDLERS:
                table[(state, kind)] = _STATE_HANDLERS[state]
            else:
                table[(state, kind)] = _DEFAULT_TRANSITIONS[kind]

    table[(ConversationState.PAYMENT_CONFIRMATION, InputKind.IMAGE)] = Transition(
        Action.CONFIRM_PAYMENT, ConversationState.MAIN_MENU,
    )
    return table


TRANSITIONS: Dict[Tuple[ConversationState, InputKind], Transition] = _build_transitions()


def lookup(state: ConversationState, kind: InputKind) -> Transition:
    return TRANSITIONS[(state, kind)]
