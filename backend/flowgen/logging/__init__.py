"""
Compile Logging Module

Provides per-compile logging for the workflow compiler.
"""
from flowgen.logging.compile_logger import CompileLogger, get_compile_logger

__all__ = ['CompileLogger', 'get_compile_logger']
