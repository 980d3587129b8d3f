"""Typed record model generation from exported collection schemas."""
from pbgen.generators.model_gen.generator import generate_models

__all__ = ["generate_models"]
