"""
A simple context manager for code profiling.

Measures the execution time of a block of code, used to log the latency of
each inference cycle and warn when it exceeds a budget.
"""
import time
import logging

profiler_log = logging.getLogger('profiler')


class CodeProfiler:
    """
    A context manager to time the execution of a code block.

    Example:
        with CodeProfiler("FLC cycle"):
            engine.process()

    Attributes:
        name (str): The name of the code block being timed.
        budget_ms (float): Latency above which a warning is logged.
        elapsed_ms (float): Duration of the last timed block.
    """
    def __init__(self, name="", budget_ms=10.0):
        self.name = name
        self.budget_ms = budget_ms
        self.elapsed_ms = 0.0

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed_ms = (time.perf_counter() - self.start_time) * 1000
        profiler_log.debug("'%s' execution time: %.3f ms", self.name, self.elapsed_ms)
        if self.elapsed_ms > self.budget_ms:
            profiler_log.warning("'%s' exceeded %.1f ms latency budget.", self.name, self.budget_ms)
