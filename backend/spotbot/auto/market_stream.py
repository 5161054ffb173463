import json
from typing import NamedTuple, Union

from pydantic import ValidationError

from ..core.exceptions import ProcessingFailure
from ..validators import StreamFrameModel
from .state import Symbol, to_symbol


class PriceTick(NamedTuple):
    symbol: Symbol
    close_price: float


def parse_tick(raw: Union[str, bytes, dict]) -> PriceTick:
    """Turn one combined-stream kline frame into a tick, or raise ProcessingFailure."""
    try:
        msg = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
        frame = StreamFrameModel.model_validate(msg)
        symbol = to_symbol(frame.data.s)
    except (json.JSONDecodeError, ValidationError, ValueError, TypeError) as e:
        raise ProcessingFailure(f"malformed feed event: {e}") from e
    return PriceTick(symbol, frame.data.k.c)
