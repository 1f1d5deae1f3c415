import logging
import math
from collections import deque
from typing import Optional, Tuple


class SampleWindow:
    """
    Trailing window of the most recent backlog samples.

    The window holds at most ``num_samples`` entries; pushing onto a full
    window evicts the oldest one. An average is only reported once the window
    is full.
    """

    def __init__(self, num_samples: int):
        if num_samples < 1:
            raise ValueError(f"num_samples must be at least 1, got {num_samples}")
        self.num_samples = num_samples
        self._samples = deque()

    def __len__(self):
        return len(self._samples)

    @property
    def samples(self) -> Tuple[int, ...]:
        return tuple(self._samples)

    def push(self, sample: int) -> Tuple[bool, Optional[float]]:
        """
        Add a sample to the window.

        Args:
            sample: Number of unfinished jobs observed at this tick

        Returns:
            tuple: (ready, average); average is None until the window is full
        """
        self._samples.append(sample)
        if len(self._samples) > self.num_samples:
            self._samples.popleft()

        if len(self._samples) < self.num_samples:
            logging.debug(f"Collected {len(self._samples)}/{self.num_samples} samples, not ready")
            return False, None

        return True, sum(self._samples) / len(self._samples)


def calculate_desired_instances(average, workers_per_instance, min_instances, max_instances):
    """Convert an average job count into an instance count within bounds."""
    desired_instances = math.ceil(average / workers_per_instance)
    if desired_instances > max_instances:
        desired_instances = max_instances
    if desired_instances < min_instances:
        desired_instances = min_instances
    return desired_instances


def can_scale(direction, now, last_scale_time, scale_up_delay, scale_down_delay):
    """
    Check if the delay for a scaling direction has elapsed.

    Args:
        direction: 'up' or 'down'
        now: Current monotonic time in seconds
        last_scale_time: Time of the last emitted decision, or None if there was none
        scale_up_delay: Minimum seconds between the last decision and a scale up
        scale_down_delay: Minimum seconds between the last decision and a scale down

    Returns:
        bool: Whether a decision in this direction may be emitted now
    """
    if last_scale_time is None:
        return True

    delay = scale_up_delay if direction == 'up' else scale_down_delay
    elapsed_time = now - last_scale_time
    if elapsed_time >= delay:
        return True

    logging.debug(f"In delay period for scaling {direction}. Elapsed: {elapsed_time:.2f}s, "
                  f"remaining: {delay - elapsed_time:.2f}s")
    return False


def decide_instance_count(
        average,
        workers_per_instance,
        current_instances,
        min_instances,
        max_instances,
        now,
        last_scale_time,
        scale_up_delay,
        scale_down_delay
):
    """
    Decide the new instance count for a smoothed backlog.

    Returns:
        Optional[int]: The new instance count, or None when no change should be made
    """
    desired_instances = calculate_desired_instances(average, workers_per_instance, min_instances, max_instances)

    if desired_instances == current_instances:
        logging.debug(f"No scaling needed, average backlog {average:.2f} matches {current_instances} instances")
        return None

    direction = 'up' if desired_instances > current_instances else 'down'
    if not can_scale(direction, now, last_scale_time, scale_up_delay, scale_down_delay):
        logging.info(f"Scaling action needed (from {current_instances} to {desired_instances}) "
                     f"but in delay period")
        return None

    logging.info(f"Scaling {direction} from {current_instances} to {desired_instances} instances "
                 f"(average backlog {average:.2f})")
    return desired_instances
