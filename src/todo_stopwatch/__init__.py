"""
Todo Stopwatch package.

A real-time todo list: clients talk to the FastAPI app in `todo_stopwatch.main`
over the `/ws` named-event channel, and each todo carries a start/stop/resume
stopwatch.
"""

__version__ = "0.1.0"
