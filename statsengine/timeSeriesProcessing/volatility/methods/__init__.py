from .baseVolatilityMethod import BaseVolatilityMethod
from .ewmaMethod import EWMAMethod
from .garchMethod import GARCHMethod
from .historicalMethod import HistoricalMethod

__all__ = ['BaseVolatilityMethod', 'EWMAMethod', 'GARCHMethod', 'HistoricalMethod']
