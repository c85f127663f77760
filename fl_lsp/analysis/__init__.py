"""
Analysis paths: the external cargo-fl engine client and the fallback rules.
"""

from fl_lsp.analysis.engine import EngineClient, EngineOutcome, EngineState
from fl_lsp.analysis.rules import analyze

__all__ = [
    'EngineClient',
    'EngineOutcome',
    'EngineState',
    'analyze',
]
