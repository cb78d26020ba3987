from authsync.transformers.auth import ModelAuthTransformer
from authsync.transformers.function import FunctionTransformer

__all__ = ["FunctionTransformer", "ModelAuthTransformer"]
