import random
from dvhop_simulator.config.config_handler import ConfigHandler

class HelloTimer:
    """
    Periodic HELLO timer of one node.

    Every start or cancel bumps `generation`; expiries and jittered sends
    carry the generation they were scheduled under and are ignored once
    it is stale.
    """

    def __init__(self, interval: float = None, jitter_max_ms: int = None):
        cfg = ConfigHandler()

        self.interval = interval if interval is not None else cfg.get('protocol', 'hello_interval')
        self.jitter_max_ms = jitter_max_ms if jitter_max_ms is not None else cfg.get('protocol', 'jitter_max_ms')
        self.running = False
        self.generation = 0

    def start(self) -> int:
        self.running = True
        self.generation += 1
        return self.generation

    def cancel(self) -> None:
        self.running = False
        self.generation += 1

    def is_current(self, generation: int) -> bool:
        return self.running and generation == self.generation

    def next_jitter(self) -> float:
        # Whole milliseconds
        return random.randint(0, self.jitter_max_ms) / 1000.0

    def __repr__(self):
        return f"<HelloTimer interval={self.interval} running={self.running} gen={self.generation}>"
