"""
Embedding surface for client programs.

FLCController wraps an Engine built from a configuration dictionary and
exposes one call per inference cycle, keyed either by variable name or by
declaration order. Each cycle is timed with the CodeProfiler and stamped
with a cycle index so that the per-stage log files can be correlated.
"""

import logging
from typing import Any, Dict, List, Sequence

from flc.config import engine_from_config, read_config
from flc.engine import Engine
from flc.exceptions import ConfigurationError, FuzzyError
from flc.operation import str_scalar
from utils.logger import set_cycle_index
from utils.profiler import CodeProfiler

controller_log = logging.getLogger("controller")


class FLCController:
    """
    The main Fuzzy Logic Controller class.

    Attributes:
        engine (Engine): The engine evaluated on every cycle.
        cycle (int): Number of cycles processed since the last restart.
    """

    def __init__(self, config: Dict[str, Any]):
        """
        Builds the engine described by `config`.

        Args:
            config (Dict[str, Any]): Parsed TOML configuration, see flc.config.

        Raises:
            ConfigurationError: If the engine cannot be built.
        """
        self.engine: Engine = engine_from_config(config)
        self.cycle = 0
        ready, status = self.engine.is_ready()
        if not ready:
            controller_log.warning("Engine <%s> is not ready:\n%s", self.engine.name, status)
        controller_log.info("FLC Controller initialized and ready.")

    @classmethod
    def from_file(cls, path: str) -> "FLCController":
        controller_log.info("Loading configuration file '%s'.", path)
        return cls(read_config(path))

    @property
    def input_names(self) -> List[str]:
        return [v.name for v in self.engine.input_variables]

    @property
    def output_names(self) -> List[str]:
        return [v.name for v in self.engine.output_variables]

    def process(self, inputs: Dict[str, float]) -> Dict[str, float]:
        """
        Executes one full inference cycle.

        Args:
            inputs (Dict[str, float]): Crisp value per input variable name.
                Inputs not listed keep their previous value.

        Returns:
            Dict[str, float]: Crisp value per output variable name.
        """
        set_cycle_index(self.cycle)
        controller_log.debug(
            "--- FLC Cycle Start (%s) ---",
            ", ".join(f"{k}= {str_scalar(v)}" for k, v in inputs.items()),
        )
        try:
            with CodeProfiler("FLC cycle"):
                for name, value in inputs.items():
                    self.engine.set_input_value(name, value)
                self.engine.process()
        except FuzzyError:
            controller_log.exception("FLC cycle %d failed", self.cycle)
            raise
        self.cycle += 1

        outputs = {v.name: v.value for v in self.engine.output_variables}
        controller_log.debug(
            "--- FLC Cycle End (%s) ---",
            ", ".join(f"{k}= {str_scalar(v)}" for k, v in outputs.items()),
        )
        return outputs

    def process_row(self, values: Sequence[float]) -> List[float]:
        """
        Same as process(), with inputs and outputs in declaration order.

        Raises:
            ConfigurationError: If the row does not have one value per input.
        """
        names = self.input_names
        if len(values) != len(names):
            raise ConfigurationError(
                f"Expected {len(names)} input values ({', '.join(names)}), but {len(values)} were given"
            )
        return list(self.process(dict(zip(names, values))).values())

    def restart(self) -> None:
        self.engine.restart()
        self.cycle = 0
        controller_log.info("FLC Controller restarted.")
