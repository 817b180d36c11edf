"""
Pipeline package: the controller driving scan, blame and correlation.
"""

from .controller import PipelineController, PipelineView, run_pipeline

__all__ = ["PipelineController", "PipelineView", "run_pipeline"]
