"""
Monitor for blocking provider calls (Google TTS, Firebase uploads) run in worker threads
"""
import threading


class ThreadPoolMonitor:
    def __init__(self):
        self.active_tasks = 0
        self.peak_tasks = 0
        self.completed_tasks = 0
        self.lock = threading.Lock()

    def start_task(self):
        with self.lock:
            self.active_tasks += 1
            self.peak_tasks = max(self.peak_tasks, self.active_tasks)

    def end_task(self):
        with self.lock:
            self.active_tasks -= 1
            self.completed_tasks += 1

    def get_stats(self):
        with self.lock:
            return {
                "active_blocking_calls": self.active_tasks,
                "peak_blocking_calls": self.peak_tasks,
                "completed_blocking_calls": self.completed_tasks,
                "total_threads": threading.active_count(),
            }


thread_monitor = ThreadPoolMonitor()
