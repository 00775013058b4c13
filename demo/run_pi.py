import asyncio
import logging
import random

from fire import Fire

from montepi import Geometry, MonteCarloPi, Scheduler
from montepi.client import SimulationClient, SimulationError, wait_for_samples
from montepi.config import SimulationConfig, configure_logging
from montepi.utils import format_stats

SERVER_URL = "http://localhost:9000"


async def _run_local(samples, delay_ms, seed, every, square_size, offset):
    rng = random.Random(seed) if seed is not None else None
    engine = MonteCarloPi(Geometry(square_size=square_size, offset=offset), rng=rng)
    scheduler = Scheduler(engine, delay_ms=delay_ms)
    done = asyncio.Event()

    def show(report):
        if report.state.total % every == 0:
            print("\n".join(format_stats(report.state, report.estimate)))
            print()
        if report.state.total >= samples:
            scheduler.pause()
            done.set()

    scheduler.subscribe(show)
    scheduler.start()
    await done.wait()
    await scheduler.shutdown()
    return engine.snapshot()


def local(samples=10_000, delay_ms=0, seed=None, every=1000, square_size=500.0, offset=50.0):
    """Run the estimator in-process and print stats every `every` samples."""
    if samples <= 0:
        raise ValueError("samples must be positive")
    state, report = asyncio.run(_run_local(samples, delay_ms, seed, max(1, int(every)), square_size, offset))
    print("Final:")
    print("\n".join(format_stats(state, report)))


def remote(action="state", server_url=SERVER_URL, delay_ms=None, wait=None):
    """Drive a running server: state, start, pause, resume, reset, toggle or step."""
    client = SimulationClient(server_url)
    actions = {
        "state": client.state,
        "start": client.start,
        "pause": client.pause,
        "resume": client.resume,
        "reset": client.reset,
        "toggle": client.toggle,
        "step": client.step,
    }
    if action not in actions:
        raise ValueError(f"Unknown action '{action}'. Choose from: {', '.join(actions)}")
    try:
        if delay_ms is not None:
            client.set_delay(delay_ms)
        result = actions[action]()
        if wait:
            result = wait_for_samples(client, int(wait)) or client.state()
    except SimulationError as e:
        print(f"Simulation error: {e}")
        return
    for key, value in result.items():
        print(f"{key}: {value}")


def serve(host="127.0.0.1", port=9000):
    """Serve the HTTP API; settings come from MONTEPI_* environment variables."""
    import uvicorn

    config = SimulationConfig.from_env()
    configure_logging(config.log_level)
    logging.info("Serving Monte Carlo Pi on %s:%s", host, port)
    uvicorn.run("montepi.rpc_server:create_app", factory=True, host=host, port=int(port))


if __name__ == "__main__":
    Fire({"local": local, "remote": remote, "serve": serve})
