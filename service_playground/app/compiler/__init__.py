from .client import CompileRequest, CompilerClient

__all__ = ["CompileRequest", "CompilerClient"]
