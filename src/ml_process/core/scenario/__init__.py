"""
Cenários de experimento: leitura (`loader`) e materialização do plano
(`builder`).
"""

from .builder import build_plan, is_template
from .loader import StepTemplate, load_scenario, parse_scenario

__all__ = ["StepTemplate", "build_plan", "is_template", "load_scenario", "parse_scenario"]
