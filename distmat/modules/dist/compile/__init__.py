from .invoker import CompilerInvoker

__all__ = ["CompilerInvoker"]
