import queue
import socket
import threading
from typing import List, Optional

import httpx
from tqdm import tqdm

from waftester.checkers.outcome import classify
from waftester.checkers.validity import check_invalid_chars
from waftester.core.builder import build_request
from waftester.core.dump import dump_request, dump_response
from waftester.core.models import (
    PayloadFile, RunDescriptor, TestInstance, TestResult,
    PASS, INVALID, ERROR,
)
from waftester.core.ratelimit import RateLimiter
from waftester.core.results import Results
from waftester.parsers.payloads import read_payloads
from waftester.reporters.console import Log

QUEUE_SIZE = 50
# how often a blocked worker wakes up to look at the stop/done signals
_POLL = 0.05


def validate_uris(run: RunDescriptor, timeout: float = 1.0) -> None:
    """Every test-set URI must parse and its host:port accept a TCP connection.

    Raises ValueError for a malformed URI and ConnectionError when unreachable.
    """
    for test_set in run.test_sets:
        try:
            url = httpx.URL(test_set.uri)
        except httpx.InvalidURL as exc:
            raise ValueError(f"URI {test_set.uri} invalid: {exc}") from exc
        if not url.host:
            raise ValueError(f"URI {test_set.uri} invalid: no host")
        port = url.port or (443 if url.scheme == "https" else 80)
        try:
            with socket.create_connection((url.host, port), timeout=timeout):
                pass
        except OSError as exc:
            raise ConnectionError(f"URI {url.host}:{port} unreachable: {exc}") from exc


class Engine:
    """Dispatcher plus two worker pools: request workers and result workers.

    run() blocks until both pools drained (or stop() was called) and returns the
    aggregate. Results are not finalized here.
    """

    def __init__(
        self,
        run: RunDescriptor,
        workers: int = 10,
        rate: int = 50,
        client: httpx.Client | None = None,
        logger: Log | None = None,
        queue_size: int = QUEUE_SIZE,
    ):
        self.run_config = run
        self.workers = max(1, workers)
        self.logger = logger or Log(verbose=-1)
        # only a client created here is closed here
        self._owns_client = client is None
        self.client = client or httpx.Client(verify=False, follow_redirects=True, timeout=10)
        self.rate_limiter = RateLimiter(rate)
        self.results = Results(run)

        self.tests: "queue.Queue[TestInstance]" = queue.Queue(maxsize=queue_size)
        self.results_queue: "queue.Queue[TestResult]" = queue.Queue(maxsize=queue_size)
        self.stop_event = threading.Event()
        self.done_queuing = threading.Event()
        self.done_processing = threading.Event()

        self.dispatched = 0
        self._dispatch_error: Optional[Exception] = None
        self._request_workers: List[threading.Thread] = []
        self._result_workers: List[threading.Thread] = []

    # ---------- queue helpers ----------
    def _put(self, q: queue.Queue, item) -> bool:
        """Blocking put that gives up once stop is signalled."""
        while not self.stop_event.is_set():
            try:
                q.put(item, timeout=_POLL)
                return True
            except queue.Full:
                continue
        return False

    def _next(self, q: queue.Queue, done: threading.Event):
        """Next item, or None once stopped or once *done* is set and *q* is empty."""
        while not self.stop_event.is_set():
            try:
                return q.get(timeout=_POLL)
            except queue.Empty:
                if done.is_set() and q.empty():
                    return None
        return None
    # -----------------------------------

    def run(self) -> Results:
        self.logger.info("begin processing...")
        self._request_workers = [
            threading.Thread(target=self._request_worker, args=(i,),
                             name=f"request-worker-{i}", daemon=True)
            for i in range(1, self.workers + 1)
        ]
        self._result_workers = [
            threading.Thread(target=self._result_worker, args=(i,),
                             name=f"result-worker-{i}", daemon=True)
            for i in range(1, self.workers + 1)
        ]
        for t in self._request_workers + self._result_workers:
            t.start()

        dispatcher = threading.Thread(target=self._dispatch, name="dispatcher", daemon=True)
        dispatcher.start()

        self._join([dispatcher])
        self._join(self._request_workers)
        # nothing else will land on the results queue
        self.done_processing.set()
        self.logger.info("finished sending requests")
        self._join(self._result_workers)
        self.logger.info("finished processing results")
        self._close_client()

        if self._dispatch_error is not None:
            raise self._dispatch_error
        return self.results

    def stop(self) -> None:
        """Cancel: workers exit at once, queued work is abandoned."""
        self.stop_event.set()
        self._join(self._request_workers + self._result_workers)
        self._close_client()
        self.logger.info("all workers shut down")

    def _close_client(self) -> None:
        if self._owns_client and not self.client.is_closed:
            self.client.close()

    @staticmethod
    def _join(threads: List[threading.Thread]) -> None:
        # short timeouts keep the main thread responsive to Ctrl+C
        for t in threads:
            while t.is_alive():
                t.join(0.2)

    # ---------- dispatcher ----------
    def _dispatch(self) -> None:
        try:
            self._queue_tests()
        except Exception as exc:
            self._dispatch_error = exc
            self.logger.error(f"error queuing tests: {exc}")
            self.stop_event.set()
        finally:
            self.done_queuing.set()

    def _queue_tests(self) -> None:
        run = self.run_config
        for payload_file in run.files:
            self.logger.info(f"processing {payload_file.path}...")
            lines = 0
            with tqdm(desc=payload_file.name, unit=" lines", leave=False,
                      disable=self.logger.verbose < 1) as progress:
                for line_no, payload in read_payloads(payload_file.path):
                    if not self._queue_line(payload_file, line_no, payload):
                        return
                    lines += 1
                    progress.update(1)
            self.logger.info(f"finished processing {payload_file.path} ({lines} lines)")
        self.logger.info("finished queuing tests")

    def _queue_line(self, payload_file: PayloadFile, line_no: int, payload: str) -> bool:
        """Queue one instance per test set and location. False once stopped."""
        run = self.run_config
        for test_set in run.test_sets:
            for location in run.locations:
                built = build_request(run, test_set, location, payload)
                instance = TestInstance(
                    file_name=payload_file.name,
                    line=line_no,
                    payload=payload,
                    set_name=test_set.name,
                    location=location.location,
                    test_type=payload_file.test_type,
                    check_payload=built.check_payload,
                    request=built.request,
                    allow_condition=test_set.allow_condition,
                    block_condition=test_set.block_condition,
                )
                if not self._put(self.tests, instance):
                    return False
                self.dispatched += 1
        return True

    # ---------- request workers ----------
    def _request_worker(self, worker_id: int) -> None:
        try:
            while True:
                instance = self._next(self.tests, self.done_queuing)
                if instance is None:
                    return
                self.logger.debug(
                    f"request worker {worker_id} processing line {instance.line} of "
                    f"{instance.file_name} against {instance.set_name}/{instance.location}")
                result = self.execute(instance)
                if result is None or not self._put(self.results_queue, result):
                    return
        finally:
            self.logger.debug(f"shutting down request worker {worker_id}")

    def _fail(self, instance: TestInstance, result: TestResult, msg: str, **extra) -> TestResult:
        self.logger.error(msg, file=instance.file_name, line=instance.line,
                          payload=instance.payload, location=instance.location, **extra)
        result.outcome = ERROR
        result.request = msg
        result.response = ""
        return result

    def execute(self, instance: TestInstance) -> Optional[TestResult]:
        """Run one test instance. None only when cancelled while throttled."""
        result = TestResult(
            file_name=instance.file_name,
            line=instance.line,
            payload=instance.payload,
            set_name=instance.set_name,
            location=instance.location,
            test_type=instance.test_type,
        )

        report = check_invalid_chars(instance.check_payload, instance.location)
        if report.invalid:
            result.outcome = INVALID
            result.request = f"Invalid payload for location: {instance.check_payload}"
            result.response = report.message
            return result

        # keep the body around for the transcript after the send
        instance.request.read()
        if not self.rate_limiter.wait(self.stop_event):
            return None

        try:
            response = self.client.send(instance.request)
        except httpx.HTTPError as exc:
            return self._fail(instance, result, f"transaction error: {exc}")

        try:
            outcome = classify(response, instance.test_type,
                               instance.allow_condition, instance.block_condition)
        except ValueError as exc:
            response.close()
            return self._fail(instance, result, str(exc))

        result.outcome = outcome
        if outcome == PASS:
            response.close()
            return result

        try:
            result.request = dump_request(instance.request)
            result.response = dump_response(response)
        except (UnicodeDecodeError, httpx.HTTPError) as exc:
            return self._fail(instance, result, f"can't dump transaction: {exc}", outcome=outcome)
        finally:
            response.close()
        return result

    # ---------- result workers ----------
    def _result_worker(self, worker_id: int) -> None:
        try:
            while True:
                result = self._next(self.results_queue, self.done_processing)
                if result is None:
                    return
                self.logger.debug(
                    f"result worker {worker_id} processing {result.outcome} result from line "
                    f"{result.line} in {result.file_name} against {result.location}")
                self.results.add(result)
        finally:
            self.logger.debug(f"shutting down result worker {worker_id}")
