from growthlens.insights.bias import BiasSummary, build_bias
from growthlens.insights.child_os import ModuleStatus, ModuleView, build_child_os

__all__ = ["BiasSummary", "build_bias", "ModuleStatus", "ModuleView", "build_child_os"]
