from statsengine.timeSeriesProcessing.validation.seriesValidator import (
    SeriesValidator,
    validate_collection,
)

__all__ = ["SeriesValidator", "validate_collection"]
