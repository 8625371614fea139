# standard library imports
import concurrent.futures
import queue
import threading

# local imports
import config
import logutil
from chunk import ChunkPos
from mapgen import ChunkGenerator


class SchedulerSaturated(RuntimeError):
    '''The request queue is full; the caller decides whether to retry, wait or drop.'''


class GenerationScheduler(object):
    '''
    Fixed pool of worker threads generating chunks from a bounded queue.

    Every request gets a concurrent.futures.Future resolving to the Chunk (or a
    GenerationError). A request that is already pending returns the same future.
    Nothing is cached once a future has resolved; keeping chunks is the caller's job.
    '''
    def __init__(self, world_config, seed=None, threads=None, queue_size=None, generator=None):
        if seed is None:
            seed = world_config.seed
        if seed is None:
            raise ValueError('no seed given and the world config does not set one')
        self.seed = seed
        self.generator = generator if generator is not None else ChunkGenerator(world_config)
        if threads is None:
            threads = config.GENERATOR_THREADS
        if queue_size is None:
            queue_size = config.GENERATOR_QUEUE_SIZE
        self.requests = queue.Queue(maxsize=queue_size)
        self._pending = {}
        self._lock = threading.Lock()
        self._closed = False
        self._workers = []
        for i in range(max(1, threads)):
            worker = threading.Thread(
                target=self._worker_loop,
                name=f"ChunkWorker-{i}",
                daemon=True,
            )
            worker.start()
            self._workers.append(worker)
        logutil.log("SCHED", f"started {len(self._workers)} generator threads, queue size {queue_size}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.shutdown()

    @property
    def pending(self):
        with self._lock:
            return len(self._pending)

    def is_pending(self, x, z):
        with self._lock:
            return ChunkPos(x, z) in self._pending

    def request_chunk(self, x, z, block=True, timeout=None):
        pos = ChunkPos(x, z)
        with self._lock:
            if self._closed:
                raise RuntimeError('scheduler is shut down')
            future = self._pending.get(pos)
            if future is not None:
                return future
            future = concurrent.futures.Future()
            future.pos = pos
            self._pending[pos] = future
        future.add_done_callback(self._forget)
        try:
            self.requests.put((pos, future), block=block, timeout=timeout)
        except queue.Full:
            with self._lock:
                self._pending.pop(pos, None)
            future.cancel()
            raise SchedulerSaturated(f'generation queue full ({self.requests.maxsize} requests)') from None
        return future

    def request_region(self, center_x, center_z, radius, block=True, timeout=None):
        '''Request the (2r+1)^2 chunks around a centre. Returns {ChunkPos: Future}.'''
        futures = {}
        for pos in ChunkPos(center_x, center_z).region(radius):
            futures[pos] = self.request_chunk(pos.x, pos.z, block=block, timeout=timeout)
        return futures

    def cancel(self, x, z):
        '''Drop a queued request. Returns False if it is unknown or already running.'''
        with self._lock:
            future = self._pending.get(ChunkPos(x, z))
        if future is None:
            return False
        return future.cancel()

    def shutdown(self, cancel_pending=True, wait=True):
        with self._lock:
            if self._closed:
                return
            self._closed = True
            pending = list(self._pending.values())
        if cancel_pending:
            for future in pending:
                future.cancel()
        for _ in self._workers:
            self.requests.put(None)
        if wait:
            for worker in self._workers:
                worker.join()
        logutil.log("SCHED", "generator threads stopped")

    def _forget(self, future):
        with self._lock:
            if self._pending.get(future.pos) is future:
                del self._pending[future.pos]

    def _worker_loop(self):
        while True:
            item = self.requests.get()
            try:
                if item is None:
                    break
                pos, future = item
                if not future.set_running_or_notify_cancel():
                    continue
                try:
                    chunk = self.generator.generate(self.seed, pos.x, pos.z)
                except Exception as e:
                    logutil.log("SCHED", f"chunk {tuple(pos)} failed: {e}", level="ERROR")
                    future.set_exception(e)
                else:
                    future.set_result(chunk)
            finally:
                self.requests.task_done()
