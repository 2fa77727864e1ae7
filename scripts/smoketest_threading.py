"""
Stress tests for thread-safety of the lazily loaded Windows zones table
and of the system timezone lookup.

Note this isn't a unit test, because it relies on the table not being
loaded yet when the threads start.
"""

import sys
import time
from os import environ
from threading import Barrier, Thread

from system_tz import WindowsTz, system_tz

if not hasattr(sys, "_is_gil_enabled") or sys._is_gil_enabled():
    # Running with GIL enabled can still be useful to compare performance,
    # but be sure to warn that threading hasn't been stress tested.
    print("WARNING: Running with GIL enabled. Threading not stress tested.")


NUM_THREADS = 16
NUM_ITERATIONS = 500
WINDOWS_SAMPLE = [
    "UTC",
    "Romance Standard Time",
    "W. Europe Standard Time",
    "US Mountain Standard Time",
    "Tokyo Standard Time",
    "Coordinated Universal Time",
    "Pacific Standard Time",
    "Middle Earth Standard Time",  # unknown
    "GMT Standard Time",
]
TIMEZONE_SAMPLE = [
    "UTC",
    "America/Guyana",
    "Etc/GMT-11",
    "Europe/Vienna",
    "Asia/Ulaanbaatar",
    "US/Alaska",
    "Arctic/Longyearbyen",
    "Pacific/Bougainville",
    "Africa/Monrovia",
    "Europe/Copenhagen",
    "America/Argentina/Ushuaia",
]
assert (
    len(TIMEZONE_SAMPLE) % NUM_THREADS
), "Timezone sample should not be evenly divisible by number of threads"
BARRIER = Barrier(NUM_THREADS)


def lookup_windows_zones(names):
    """Hammer the table, starting all threads at once so they
    race to load it"""
    BARRIER.wait()
    first = {}
    for name in names:
        tz = WindowsTz.get(name)
        if first.setdefault(name, tz) is not tz:
            raise AssertionError(f"Unstable lookup for {name!r}")


def set_system_tz(tzs):
    """Change TZ while resolving the system timezone"""
    BARRIER.wait()
    for tz in tzs:
        environ["TZ"] = tz
        system_tz()


def main(func, sample):
    print(f"Starting test: {func.__name__}")
    items = sample * (NUM_THREADS * NUM_ITERATIONS)
    threads = []

    start_time = time.time()

    for n in range(NUM_THREADS):
        thread = Thread(target=func, args=(items[n::NUM_THREADS],))
        threads.append(thread)
        thread.start()

    for thread in threads:
        thread.join()

    end_time = time.time()
    print(f"Execution time: {end_time - start_time:.2f} seconds")


if __name__ == "__main__":
    main(lookup_windows_zones, WINDOWS_SAMPLE)
    print(f"Windows zones dataset: {WindowsTz.dataset_version()}")
    main(set_system_tz, TIMEZONE_SAMPLE)
