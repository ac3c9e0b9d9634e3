# dealengine/exceptions.py

class DealEngineError(Exception):
    """Base class for deal engine failures"""


class InvalidOrderError(DealEngineError, ValueError):
    """Caller supplied structurally invalid order items or subtotal.

    Business conditions (expired deal, missing combo items, usage cap) are
    never raised; they come back as outcome data with a reason.
    """
