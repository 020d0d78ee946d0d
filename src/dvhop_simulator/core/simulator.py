import os
import time
import heapq
from typing import Dict, List, Optional
from dvhop_simulator.config.config_handler import ConfigHandler
from dvhop_simulator.core.channel import Channel
from dvhop_simulator.core.events import EventType
from dvhop_simulator.nodes.node import Node
from dvhop_simulator.utils import logging
from dvhop_simulator.utils.metrics import Metrics

class Event:
    def __init__(self, time: float, event_type: EventType, target_obj, data: Optional[Dict] = None):
        self.time = time
        self.event_type = event_type
        self.target_obj = target_obj
        self.data = data or {}

    def __repr__(self):
        target_id = getattr(self.target_obj, 'node_id', id(self.target_obj))
        return f"Event({self.time:.3f}, {self.event_type.name}, {target_id})"

class Simulator:
    """
    Single cooperative event clock shared by every node.

    Events run one at a time to completion, ordered by time and then by
    insertion order, so a node never sees two of its handlers overlap.
    """

    ROUTES_FILE = "dvhop.routes"
    DISTANCES_FILE = "dvhop.distances"

    def __init__(
        self,
        nodes: List[Node],
        channel: Channel,
        metrics: Optional[Metrics] = None,
        duration: float = None,
        output_dir: Optional[str] = None,
    ):
        cfg = ConfigHandler()

        self.nodes = nodes
        self.channel = channel
        self.metrics = metrics
        self.duration = duration if duration is not None else cfg.get('simulation', 'duration')
        self.output_dir = output_dir

        self.report_interval = cfg.get('simulation', 'report_interval')
        self.print_routes_at = cfg.get('simulation', 'print_routes_at')
        self.print_distances_at = cfg.get('simulation', 'print_distances_at')

        self.channel.set_nodes(self.nodes)
        self.channel.simulator = self
        self.running = False
        self.simulated_time = 0.0

        for node in self.nodes:
            node.simulator = self

        self.event_queue = []
        self.event_counter = 0
        self.routes_dump = ""
        self.distances_dump = ""
        self.last_report_time = None

        self._schedule_initial_events()

    @property
    def now(self) -> float:
        return self.simulated_time

    def schedule_event(self, time: float, event_type: EventType, target_obj, data: Optional[Dict] = None) -> Event:
        event = Event(time, event_type, target_obj, data)
        self.event_counter += 1
        heapq.heappush(self.event_queue, (event.time, self.event_counter, event))
        return event

    def _get_next_event(self) -> Optional[Event]:
        if not self.event_queue:
            return None
        _, _, event = heapq.heappop(self.event_queue)
        return event

    def _schedule_initial_events(self):
        for node in self.nodes:
            self.schedule_event(0.0, EventType.NODE_START, node)

        if self.report_interval:
            self.schedule_event(self.report_interval, EventType.LOCALIZATION_REPORT, self)
        if self.print_routes_at is not None:
            self.schedule_event(self.print_routes_at, EventType.ROUTES_DUMP, self)
        if self.print_distances_at is not None:
            self.schedule_event(self.print_distances_at, EventType.DISTANCES_DUMP, self)

    def handle_event(self, event, sim_time: float):
        if event.event_type == EventType.LOCALIZATION_REPORT:
            self.record_localization(sim_time)
            self.schedule_event(sim_time + self.report_interval, EventType.LOCALIZATION_REPORT, self)
        elif event.event_type == EventType.ROUTES_DUMP:
            self.routes_dump = "".join(node.format_routing_table() for node in self.nodes)
            self._write_dump(self.ROUTES_FILE, self.routes_dump)
        elif event.event_type == EventType.DISTANCES_DUMP:
            self.distances_dump = "".join(node.format_distance_table() for node in self.nodes)
            self._write_dump(self.DISTANCES_FILE, self.distances_dump)
        else:
            logging.log_error(f"Simulator received unhandled event: {event.event_type}")

    def _write_dump(self, filename: str, content: str):
        if self.output_dir is None:
            return
        os.makedirs(self.output_dir, exist_ok=True)
        path = os.path.join(self.output_dir, filename)
        with open(path, "w") as f:
            f.write(content)
        logging.log_info(f"Wrote {path} at {self.simulated_time:.2f}s")

    def record_localization(self, sim_time: float):
        if not self.metrics:
            return
        self.last_report_time = sim_time
        for node in self.nodes:
            self.metrics.log_localization(
                sim_time,
                node.node_id,
                node.position,
                node.reported_position(),
                node.is_beacon,
            )

    def start(self):
        self.running = True
        real_time_start = time.time()

        try:
            while self.running:
                if not self.event_queue:
                    logging.log_info("No more events to process.")
                    break
                if self.event_queue[0][0] > self.duration:
                    break

                event = self._get_next_event()
                self.simulated_time = event.time

                if event.event_type in [EventType.SEND_PACKET, EventType.RECEPTION]:
                    logging.log_debug(f"Processing {event}")

                try:
                    if event.target_obj is self:
                        self.handle_event(event, self.simulated_time)
                    else:
                        event.target_obj.handle_event(event, self.simulated_time)
                except Exception as e:
                    logging.log_error(f"Error handling event {event}: {str(e)}")

        except KeyboardInterrupt:
            logging.log_info("Simulation interrupted by user.")

        self.running = False
        self.simulated_time = max(self.simulated_time, self.duration)
        if self.last_report_time != self.simulated_time:
            self.record_localization(self.simulated_time)

        real_duration = time.time() - real_time_start
        sim_speedup = self.simulated_time / real_duration if real_duration > 0 else float('inf')
        logging.log_info(f"Simulation complete. {self.simulated_time:.2f}s simulated in {real_duration:.2f}s real time (speedup: {sim_speedup:.2f}x)")

    def __repr__(self):
        return f"<Simulator nodes={len(self.nodes)} t={self.simulated_time:.2f}>"
