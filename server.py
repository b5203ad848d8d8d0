"""
HillDrive Server  –  Flask + Server-Sent Events
===============================================

Endpoints:
  POST /start        Start (or restart) training with JSON config body
  POST /stop         Stop the running training
  POST /pause        Pause training between ticks
  POST /resume       Resume paused training
  GET  /stream       SSE stream – browser subscribes here for live data
  GET  /status       Current training state + telemetry as JSON
  POST /play/start   Begin a human-play session (optional {"seed": n})
  POST /play/input   One human tick: {"accelerate", "brake", "lean"}

Run:
  python server.py
  # → http://localhost:5000
"""

import math
import threading
import queue
import json

from flask import Flask, Response, request, jsonify

from simulation import Simulation, HumanPlaySession
from vehicle import HumanInput
from population import validate_settings
from config import (
    POPULATION, MAX_GENERATIONS, MUTATION_RATE, MUTATION_STRENGTH, TICK_DT,
)

# ──────────────────────────────────────────────────────────────────────────────
app = Flask(__name__)

# Global training state
_sim_thread:  threading.Thread | None = None
_stop_event   = threading.Event()
_resume_event = threading.Event()          # cleared while paused
_resume_event.set()
_gen_queue    = queue.Queue(maxsize=200)   # holds dicts to stream
_sim_status   = {
    "running":    False,
    "paused":     False,
    "generation": 0,
    "max_gen":    0,
    "cfg":        {},
    "telemetry":  {},
}
_status_lock  = threading.Lock()

# Human play keeps one session per server
_play_session: HumanPlaySession | None = None
_play_lock    = threading.Lock()


# ──────────────────────────────────────────────────────────────────────────────
# CORS helper – allow a browser front end on any origin to call us
# ──────────────────────────────────────────────────────────────────────────────

@app.after_request
def add_cors(response):
    response.headers["Access-Control-Allow-Origin"]  = "*"
    response.headers["Access-Control-Allow-Headers"] = "Content-Type"
    response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
    return response

@app.route("/", methods=["OPTIONS"])
@app.route("/<path:p>", methods=["OPTIONS"])
def preflight(p=""):
    return Response(status=200)


@app.errorhandler(ValueError)
def bad_request(err):
    return jsonify({"error": str(err)}), 400


# ──────────────────────────────────────────────────────────────────────────────
# Training thread
# ──────────────────────────────────────────────────────────────────────────────

def _whole_number(name: str, value) -> int:
    """Accept JSON integers (or integral floats); reject bools and strings."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"{name} must be an integer, got {value!r}")
    return int(value)


def _number(name: str, value) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise ValueError(f"{name} must be finite, got {value!r}")
    return float(value)


def _seed(value):
    if value is None:
        return None
    seed = _whole_number("seed", value)
    if seed < 0:
        raise ValueError(f"seed must be non-negative, got {seed}")
    return seed


def _flag(name: str, value) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"{name} must be true or false, got {value!r}")
    return value


def _json_body() -> dict:
    data = request.get_json(force=True, silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("request body must be a JSON object")
    return data


def _build_cfg(data: dict) -> dict:
    """Merge request JSON with defaults and validate it."""
    cfg = {
        "population":        _whole_number("population",
                                           data.get("population", POPULATION)),
        "max_generations":   _whole_number("maxGenerations",
                                           data.get("maxGenerations", MAX_GENERATIONS)),
        "mutation_rate":     _number("mutationRate",
                                     data.get("mutationRate", MUTATION_RATE)),
        "mutation_strength": _number("mutationStrength",
                                     data.get("mutationStrength", MUTATION_STRENGTH)),
        "dt":                _number("dt", data.get("dt", TICK_DT)),
        "seed":              _seed(data.get("seed")),
    }
    validate_settings(cfg["population"], cfg["mutation_rate"],
                      cfg["mutation_strength"])
    if cfg["max_generations"] <= 0:
        raise ValueError(
            f"maxGenerations must be positive, got {cfg['max_generations']}")
    if cfg["dt"] <= 0:
        raise ValueError(f"tick length must be positive, got {cfg['dt']}")
    return cfg


def _generation_payload(cfg: dict, gen_idx: int, stats: dict,
                        terrain, finished: list, population) -> dict:
    best = None
    for v in finished:
        if best is None or v.fitness > best.fitness:
            best = v
    return {
        "type":        "generation",
        "gen":         gen_idx,
        "maxGen":      cfg["max_generations"],
        "bestFitness": round(stats["best_fitness"], 3),
        "meanFitness": round(stats["mean_fitness"], 3),
        "allTimeBest": round(stats["all_time_best"], 3),
        "bestScore":   round(stats["best_score"], 3),
        "diversity":   round(stats["diversity"], 4),
        "flipped":     stats["flipped"],
        "terrain":     terrain.points,
        "finishLine":  [
            {"x": round(v.state.x, 2), "y": round(v.state.y, 2),
             "score": round(v.score, 2)}
            for v in finished
        ],
        "bestLayers":  list(best.brain.layer_sizes) if best else [],
        "bestWeights": [w.round(4).tolist() for w in best.brain.weights] if best else [],
        "speciesCount": population.species_count(),
    }


def _offer(out_q: queue.Queue, payload: dict):
    """Non-blocking put; drop oldest frame if queue full."""
    while True:
        try:
            out_q.put_nowait(payload)
            return
        except queue.Full:
            try:
                out_q.get_nowait()
            except queue.Empty:
                pass


def _sim_worker(cfg: dict, stop_evt: threading.Event,
                resume_evt: threading.Event, out_q: queue.Queue):
    """Run training in a background thread; push each generation into queue."""

    def on_gen(gen_idx, stats, terrain, finished, population):
        if stop_evt.is_set():
            return
        payload = _generation_payload(cfg, gen_idx, stats, terrain,
                                      finished, population)
        with _status_lock:
            _sim_status["generation"] = population.generation
        _offer(out_q, payload)

    def on_step(tick, sim):
        with _status_lock:
            _sim_status["telemetry"] = sim.telemetry()

    try:
        sim = Simulation(
            population        = cfg["population"],
            max_generations   = cfg["max_generations"],
            mutation_rate     = cfg["mutation_rate"],
            mutation_strength = cfg["mutation_strength"],
            dt                = cfg["dt"],
            seed              = cfg["seed"],
            on_step_callback  = on_step,
            on_gen_callback   = on_gen,
        )
        with _status_lock:
            _sim_status["running"] = True
        sim.run(stop_event=stop_evt, resume_event=resume_evt)
    finally:
        with _status_lock:
            _sim_status["running"] = False
            _sim_status["paused"]  = False
            last_gen = _sim_status["generation"]
        _offer(out_q, {"type": "done", "gen": last_gen})


# ──────────────────────────────────────────────────────────────────────────────
# Routes
# ──────────────────────────────────────────────────────────────────────────────

@app.route("/start", methods=["POST"])
def start():
    global _sim_thread, _stop_event, _resume_event, _gen_queue

    cfg = _build_cfg(_json_body())

    # Stop any running training
    _stop_event.set()
    if _sim_thread and _sim_thread.is_alive():
        _sim_thread.join(timeout=3)

    # Reset
    _stop_event   = threading.Event()
    _resume_event = threading.Event()
    _resume_event.set()
    _gen_queue    = queue.Queue(maxsize=200)
    with _status_lock:
        _sim_status["generation"] = 1
        _sim_status["running"]    = False
        _sim_status["paused"]     = False
        _sim_status["cfg"]        = cfg
        _sim_status["max_gen"]    = cfg["max_generations"]
        _sim_status["telemetry"]  = {}

    _sim_thread = threading.Thread(
        target=_sim_worker,
        args=(cfg, _stop_event, _resume_event, _gen_queue),
        daemon=True,
    )
    _sim_thread.start()
    return jsonify({"status": "started", "cfg": cfg})


@app.route("/stop", methods=["POST"])
def stop():
    _stop_event.set()
    return jsonify({"status": "stopped"})


@app.route("/pause", methods=["POST"])
def pause():
    _resume_event.clear()
    with _status_lock:
        _sim_status["paused"] = True
    return jsonify({"status": "paused"})


@app.route("/resume", methods=["POST"])
def resume():
    _resume_event.set()
    with _status_lock:
        _sim_status["paused"] = False
    return jsonify({"status": "resumed"})


@app.route("/status", methods=["GET"])
def status():
    with _status_lock:
        return jsonify(dict(_sim_status))


@app.route("/stream", methods=["GET"])
def stream():
    """SSE endpoint – browser subscribes and receives each generation as an event."""

    def event_gen():
        yield "data: {\"type\": \"connected\"}\n\n"

        while True:
            try:
                payload = _gen_queue.get(timeout=1)
                yield f"data: {json.dumps(payload)}\n\n"
                if payload.get("type") == "done":
                    break
            except queue.Empty:
                # Keep-alive ping
                yield "data: {\"type\": \"ping\"}\n\n"

    return Response(
        event_gen(),
        mimetype="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",    # disable nginx buffering if behind proxy
        },
    )


# ──────────────────────────────────────────────────────────────────────────────
# Human play
# ──────────────────────────────────────────────────────────────────────────────

@app.route("/play/start", methods=["POST"])
def play_start():
    global _play_session
    data = _json_body()
    seed = _seed(data.get("seed"))
    with _play_lock:
        _play_session = HumanPlaySession(seed=seed)
        return jsonify({
            "status":  "playing",
            "terrain": _play_session.terrain.points,
            "vehicle": _play_session.state(),
        })


@app.route("/play/input", methods=["POST"])
def play_input():
    data = _json_body()
    human = HumanInput(
        accelerate=_flag("accelerate", data.get("accelerate", False)),
        brake=_flag("brake", data.get("brake", False)),
        lean=_whole_number("lean", data.get("lean", 0)),
    ).validate()

    with _play_lock:
        if _play_session is None:
            return jsonify({"error": "no play session; POST /play/start first"}), 409
        state = _play_session.tick(human)
    return jsonify({"status": "dead" if state["dead"] else "playing",
                    "vehicle": state})


# ──────────────────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    print("=" * 50)
    print("  HillDrive Server  →  http://localhost:5000")
    print("  SSE stream        →  http://localhost:5000/stream")
    print("=" * 50)
    app.run(host="0.0.0.0", port=5000, threaded=True, debug=False)
