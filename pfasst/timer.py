"""
per owner timing of controller phases, sweepers and controllers each own an
EventTimer and the drivers wrap predict, sweep, restrict, fas and interpolate
"""
import time


class PhaseRecord(object):
    def __init__(self, name):
        self.name = name
        self.total_time = 0.0
        self.events = 0

    def average(self):
        return 0.0 if self.events == 0 else self.total_time / self.events

    def __str__(self):
        return "timer {:30.30s} {:7d} events, {:12.5f} secs/event, {:12.5f} secs total".format(
            self.name, self.events, self.average(), self.total_time
        )


class PhaseTimer(object):
    """
    context manager adding one event to a PhaseRecord, nested use is allowed
    """
    def __init__(self, record):
        self.record = record
        self.starts = []
        self.last_interval = 0.0

    def __enter__(self):
        self.starts.append(time.perf_counter())
        return self

    def __exit__(self, *args):
        self.last_interval = time.perf_counter() - self.starts.pop()
        self.record.total_time += self.last_interval
        self.record.events += 1


class EventTimer(object):
    """
    named phase timers of one sweeper or controller,
    use as: with sweeper.timer("sweep"): ...
    """
    def __init__(self, parent):
        self.parent = parent
        self.records = {}

    def __call__(self, name):
        if name not in self.records:
            self.records[name] = PhaseRecord(name)
        return PhaseTimer(self.records[name])

    def __getitem__(self, name):
        return self.records[name]

    def __contains__(self, name):
        return name in self.records

    def total_time(self, name):
        """
        :return: seconds spent in phase name, None if the phase never ran
        """
        if name not in self.records:
            return None
        return self.records[name].total_time

    def clear(self):
        self.records = {}

    def names(self):
        return sorted(self.records.keys())

    def show_timers(self):
        for name in self.names():
            print("{}".format(self.records[name]))
