import logging
import queue
import threading
import time
from typing import Optional

from resque_autoscaler.actuator import Actuator
from resque_autoscaler.scaler import SampleWindow, decide_instance_count

# How often a blocked channel send/receive rechecks the stop signal
_CHANNEL_POLL_SECONDS = 0.5


class ControllerState:
    """Mutable state of the decision loop. Owned by the decision thread only."""

    def __init__(self, current_instances: int, num_samples: int):
        self.current_instances = current_instances
        self.window = SampleWindow(num_samples)
        self.last_scale_time: Optional[float] = None

    def __repr__(self):
        return (f"ControllerState(current_instances={self.current_instances}, "
                f"window={list(self.window.samples)}, last_scale_time={self.last_scale_time})")


def initial_instance_count(fleet, min_instances: int) -> int:
    """Read the live fleet size, falling back to ``min_instances``."""
    count = fleet.get_instance_count()
    if count is None or count <= 0:
        logging.error(f"Unable to retrieve current instance count, assuming {min_instances}")
        return min_instances
    logging.info(f"Current fleet size is {count} instances")
    return count


class DecisionChannel:
    """
    Unbuffered handoff of scaling decisions from the decision thread to the
    actuation thread.

    ``send`` returns only once the receiver has taken the value, so the sender
    stays blocked for as long as the receiver is busy applying the previous
    decision. Both ends give up once ``stop_event`` is set.
    """

    def __init__(self, stop_event: threading.Event):
        self._stop_event = stop_event
        self._slot = queue.Queue(maxsize=1)
        self._taken = threading.Event()

    def send(self, instances: int) -> bool:
        """
        Hand a decision to the receiver.

        Returns:
            bool: True once the receiver took the decision, False if stopped first
        """
        self._taken.clear()
        while True:
            if self._stop_event.is_set():
                return False
            try:
                self._slot.put(instances, timeout=_CHANNEL_POLL_SECONDS)
                break
            except queue.Full:
                continue

        while not self._taken.wait(_CHANNEL_POLL_SECONDS):
            logging.debug(f"Actuation busy, waiting to hand over {instances} instances")
            if self._stop_event.is_set():
                try:
                    self._slot.get_nowait()
                except queue.Empty:
                    pass
                return self._taken.is_set()
        return True

    def receive(self) -> Optional[int]:
        """Wait for the next decision; None once stopped."""
        while not self._stop_event.is_set():
            try:
                instances = self._slot.get(timeout=_CHANNEL_POLL_SECONDS)
            except queue.Empty:
                continue
            self._taken.set()
            return instances
        return None


class Autoscaler:
    """
    Keeps a worker fleet sized to the Resque backlog.

    The decision loop runs in the thread calling :meth:`run`: every
    ``config.interval`` seconds it samples the backlog, smooths it and decides
    whether to resize. Decisions are handed over an unbuffered channel to a
    separate actuation thread, so a slow fleet API never delays sampling.

    Args:
        config: Autoscaler configuration
        sampler: Object with a ``sample() -> int`` method
        fleet: Object with ``get_instance_count()`` and ``scale(n)`` methods
        clock: Monotonic time source
        stop_event: Optional event; once set, both loops return
    """

    def __init__(self, config, sampler, fleet, clock=time.monotonic, stop_event=None):
        self.config = config
        self.sampler = sampler
        self.actuator = Actuator(fleet)
        self.clock = clock
        self.stop_event = stop_event or threading.Event()
        self.decisions = DecisionChannel(self.stop_event)
        self._state = ControllerState(
            initial_instance_count(fleet, config.min_instances),
            config.num_samples
        )
        self._actuation_thread = None

    @property
    def current_instances(self) -> int:
        return self._state.current_instances

    def tick(self) -> Optional[int]:
        """
        Run one sampling step.

        Returns:
            Optional[int]: The new instance count if a change was decided, else None
        """
        state = self._state
        jobs = self.sampler.sample()
        ready, average = state.window.push(jobs)
        if not ready:
            return None

        now = self.clock()
        new_instances = decide_instance_count(
            average,
            self.config.workers_per_instance,
            state.current_instances,
            self.config.min_instances,
            self.config.max_instances,
            now,
            state.last_scale_time,
            self.config.scale_up_delay,
            self.config.scale_down_delay
        )
        if new_instances is None:
            return None

        state.current_instances = new_instances
        state.last_scale_time = now
        return new_instances

    def _send(self, instances: int) -> bool:
        return self.decisions.send(instances)

    def _receive(self) -> Optional[int]:
        return self.decisions.receive()

    def decision_loop(self):
        logging.info(f"Starting decision loop: interval={self.config.interval}s, "
                     f"samples={self.config.num_samples}, bounds=[{self.config.min_instances}, "
                     f"{self.config.max_instances}], current={self.current_instances}")
        while not self.stop_event.is_set():
            try:
                new_instances = self.tick()
            except Exception as e:
                logging.error(f"Error in decision loop: {e}", exc_info=True)
                new_instances = None

            if new_instances is not None and not self._send(new_instances):
                break
            self.stop_event.wait(self.config.interval)

    def actuation_loop(self):
        while True:
            instances = self._receive()
            if instances is None:
                return
            self.actuator.apply(instances)

    def start_actuation(self) -> threading.Thread:
        if self._actuation_thread is None or not self._actuation_thread.is_alive():
            self._actuation_thread = threading.Thread(
                target=self.actuation_loop, name="actuation", daemon=True
            )
            self._actuation_thread.start()
        return self._actuation_thread

    def run(self):
        """Run both loops until the stop event is set; by default, forever."""
        self.start_actuation()
        self.decision_loop()

    def stop(self, timeout: Optional[float] = None):
        self.stop_event.set()
        if self._actuation_thread is not None:
            self._actuation_thread.join(timeout)
