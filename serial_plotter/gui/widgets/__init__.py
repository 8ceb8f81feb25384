from .signal_plot import SignalPlot

__all__ = ["SignalPlot"]
