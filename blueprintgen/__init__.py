"""
Blueprintgen - Go API project generator

Turns a markdown blueprint (a fenced json block describing models, the
database and optional auth / payments modules) into a complete gin project.
"""

__version__ = "0.1.0"

from blueprintgen.spec import Configuration, Model
from blueprintgen.enrich import enrich
from blueprintgen.planner import ArtifactPlanner, Plan, plan
from blueprintgen.generator import generate_project, ProjectGenerator

__all__ = [
    "Configuration",
    "Model",
    "enrich",
    "ArtifactPlanner",
    "Plan",
    "plan",
    "generate_project",
    "ProjectGenerator",
]
