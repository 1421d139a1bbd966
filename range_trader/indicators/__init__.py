from .moving_average import (
    INVALID_HANDLE,
    IndicatorProvider,
    PandasIndicatorProvider,
    moving_average,
)

__all__ = ["INVALID_HANDLE", "IndicatorProvider", "PandasIndicatorProvider", "moving_average"]
