"""
flowgen — compile visual agent workflows into Python source.

The public entry point is :func:`flowgen.workflow.compile_workflow`.
"""

__version__ = "0.1.0"
