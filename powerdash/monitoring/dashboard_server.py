"""
Web-based dashboard server for live electrical telemetry.

This module provides a Flask-based web server that renders metric cards and
charts, exposes the ingestion state over a JSON API, and pushes periodic
updates to connected browsers over Socket.IO.
"""

import threading
from datetime import datetime
from typing import Optional

from flask import Flask, jsonify, render_template_string, request
from flask_socketio import SocketIO, emit

from powerdash.config_models import DashboardConfig
from powerdash.logging_config import get_logger
from .ingestion import IngestionAdapter
from .models import MetricType
from .view import build_dashboard_view


class DashboardServer:
    """Live electrical telemetry dashboard server."""

    def __init__(self, adapter: IngestionAdapter, config: Optional[DashboardConfig] = None):
        """Initialize dashboard server."""
        self.adapter = adapter
        self.config = config or DashboardConfig()
        self.logger = get_logger(__name__)

        self.app = Flask(__name__)
        self.app.config['SECRET_KEY'] = 'electric-counter-dashboard'

        cors_allowed_origins = "*" if self.config.enable_cors else None
        self.socketio = SocketIO(self.app, cors_allowed_origins=cors_allowed_origins,
                                 async_mode="threading")

        self._setup_routes()
        self._setup_socketio_handlers()

        self._update_thread: Optional[threading.Thread] = None
        self._stop_updates = threading.Event()

    def _setup_routes(self) -> None:
        """Setup Flask routes."""

        @self.app.route('/')
        def dashboard():
            """Main dashboard page."""
            return render_template_string(
                DASHBOARD_TEMPLATE,
                update_interval_ms=self.config.update_interval_ms
            )

        @self.app.route('/api/snapshot')
        def get_snapshot():
            """Get current values of every metric."""
            return jsonify({
                "snapshot": self.adapter.snapshot().to_dict(),
                "timestamp": datetime.now().isoformat()
            })

        @self.app.route('/api/history')
        def get_history():
            """Get buffered history, optionally filtered by metric."""
            count = request.args.get('count', self.config.max_data_points, type=int)
            metric_name = request.args.get('metric')

            metric = None
            if metric_name:
                metric = MetricType.lookup(metric_name)
                if metric is None:
                    return jsonify({"error": f"Unknown metric '{metric_name}'"}), 400

            records = self.adapter.history(metric, count)
            return jsonify({
                "history": [r.to_dict() for r in records],
                "count": len(records),
                "timestamp": datetime.now().isoformat()
            })

        @self.app.route('/api/history/<metric_name>/summary')
        def get_history_summary(metric_name: str):
            """Get statistical summary for a metric over the buffered window."""
            metric = MetricType.lookup(metric_name)
            if metric is None:
                return jsonify({"error": f"Unknown metric '{metric_name}'"}), 400
            return jsonify(self.adapter.history_summary(metric))

        @self.app.route('/api/status')
        def get_status():
            """Get status classification of the current snapshot."""
            statuses = self.adapter.statuses()
            return jsonify({
                "status": {metric.value: result.to_dict() for metric, result in statuses.items()},
                "timestamp": datetime.now().isoformat()
            })

        @self.app.route('/api/thresholds')
        def get_thresholds():
            """Get the session threshold configuration."""
            return jsonify(self.adapter.thresholds.to_dict())

        @self.app.route('/api/state')
        def get_state():
            """Get ingestion loading and error state."""
            return jsonify(self.adapter.state())

        @self.app.route('/api/view')
        def get_view():
            """Get the complete page payload."""
            return jsonify(build_dashboard_view(self.adapter, self.config.max_data_points))

    def _setup_socketio_handlers(self) -> None:
        """Setup SocketIO event handlers."""

        @self.socketio.on('connect')
        def handle_connect():
            """Handle client connection."""
            self.logger.info(f"Dashboard client connected: {request.sid}")
            emit('status', {'connected': True, 'timestamp': datetime.now().isoformat()})

        @self.socketio.on('disconnect')
        def handle_disconnect(*args):
            """Handle client disconnection."""
            self.logger.info(f"Dashboard client disconnected: {request.sid}")

        @self.socketio.on('request_update')
        def handle_request_update(data=None):
            """Send the current page payload to the requesting client only."""
            emit('dashboard_update', build_dashboard_view(self.adapter, self.config.max_data_points))

    def start(self) -> None:
        """Start the dashboard server. Blocks until the server exits."""
        self.logger.info(f"Starting dashboard server on {self.config.host}:{self.config.port}")

        self.start_updates()

        self.socketio.run(
            self.app,
            host=self.config.host,
            port=self.config.port,
            debug=self.config.debug,
            use_reloader=False,
            allow_unsafe_werkzeug=True
        )

    def stop(self) -> None:
        """Stop pushing updates."""
        self._stop_updates.set()
        if self._update_thread and self._update_thread.is_alive():
            self._update_thread.join(timeout=5)

        self.logger.info("Dashboard server stopped")

    def start_updates(self) -> None:
        """Start background thread for real-time updates."""
        if self._update_thread and self._update_thread.is_alive():
            return
        self._stop_updates.clear()
        self._update_thread = threading.Thread(
            target=self._update_worker,
            daemon=True,
            name="DashboardUpdates"
        )
        self._update_thread.start()

    def push_update(self) -> None:
        """Broadcast the current page payload to every connected client."""
        self.socketio.emit('dashboard_update', build_dashboard_view(self.adapter, self.config.max_data_points))

    def _update_worker(self) -> None:
        """Background worker for pushing real-time updates."""
        while not self._stop_updates.wait(self.config.update_interval_ms / 1000.0):
            try:
                self.push_update()
            except Exception as e:
                self.logger.error(f"Error in dashboard update worker: {e}")


DASHBOARD_TEMPLATE = '''
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Smart Electric Dashboard</title>
    <script src="https://cdnjs.cloudflare.com/ajax/libs/socket.io/4.7.5/socket.io.min.js"></script>
    <script src="https://cdn.plot.ly/plotly-2.35.2.min.js"></script>
    <style>
        body {
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
            margin: 0;
            padding: 20px;
            background-color: #f5f5f5;
            color: #111827;
            transition: background-color 0.3s;
        }

        body.dark { background-color: #111827; color: #f3f4f6; }
        body.dark .card { background: #1f2937; }

        .header {
            background: linear-gradient(135deg, #3B82F6 0%, #8B5CF6 100%);
            color: white;
            padding: 20px;
            border-radius: 8px;
            margin-bottom: 20px;
            text-align: center;
            position: relative;
        }

        .dark-toggle {
            position: absolute;
            top: 20px;
            right: 20px;
            border: none;
            border-radius: 20px;
            padding: 6px 12px;
            cursor: pointer;
        }

        .status-badge { font-size: 0.9em; opacity: 0.9; }
        .load-error { color: #FDE68A; margin-left: 8px; }

        .cards {
            display: grid;
            grid-template-columns: repeat(auto-fit, minmax(200px, 1fr));
            gap: 20px;
            margin-bottom: 20px;
        }

        .charts {
            display: grid;
            grid-template-columns: repeat(auto-fit, minmax(400px, 1fr));
            gap: 20px;
            margin-bottom: 20px;
        }

        .card {
            background: white;
            border-radius: 8px;
            padding: 20px;
            box-shadow: 0 2px 10px rgba(0,0,0,0.1);
            border-left: 4px solid transparent;
        }

        .card h3 { margin-top: 0; font-size: 1em; }

        .metric-value { font-size: 2em; font-weight: bold; }
        .metric-unit { font-size: 0.8em; color: #6b7280; margin-left: 4px; }

        .badge { display: inline-block; margin-top: 8px; font-weight: 600; }
        .badge-green { color: #16a34a; }
        .badge-yellow { color: #ca8a04; }
        .badge-red { color: #dc2626; }
        .badge-gray { color: #6b7280; }

        .loading-placeholder {
            display: inline-block;
            width: 120px;
            height: 1.6em;
            border-radius: 4px;
            background: #e5e7eb;
        }

        .chart-container { height: 300px; }

        .health {
            display: grid;
            grid-template-columns: repeat(4, 1fr);
            gap: 20px;
            text-align: center;
        }

        .dot {
            width: 24px;
            height: 24px;
            border-radius: 50%;
            margin: 0 auto 10px auto;
        }

        .dot-green { background-color: #22c55e; }
        .dot-yellow { background-color: #eab308; }
        .dot-red { background-color: #ef4444; }
        .dot-gray { background-color: #9ca3af; }

        .connection-status {
            position: fixed;
            bottom: 20px;
            right: 20px;
            padding: 10px 15px;
            border-radius: 20px;
            color: white;
            font-weight: bold;
        }

        .connected { background-color: #4CAF50; }
        .disconnected { background-color: #f44336; }

        .stream-error {
            background: #fee2e2;
            color: #991b1b;
            padding: 10px 15px;
            border-radius: 8px;
            margin-bottom: 20px;
            display: none;
        }
    </style>
</head>
<body>
    <div id="connectionStatus" class="connection-status disconnected">Connecting...</div>

    <div class="header">
        <button id="darkToggle" class="dark-toggle">Dark mode</button>
        <h1>Smart Electric Dashboard</h1>
        <p>Advanced Real-time Electrical Parameter Monitoring</p>
        <div class="status-badge">
            Live &bull; Last updated: <span id="lastUpdated">-</span>
            <span id="loadError" class="load-error"></span>
        </div>
    </div>

    <div id="streamError" class="stream-error"></div>

    <div id="cards" class="cards"></div>

    <div id="charts" class="charts">
        <div class="card"><h3 id="chartTitle0"></h3><div id="chart0" class="chart-container"></div></div>
        <div class="card"><h3 id="chartTitle1"></h3><div id="chart1" class="chart-container"></div></div>
    </div>

    <div class="card">
        <h3>System Health Overview</h3>
        <div id="health" class="health"></div>
    </div>

    <script>
        const socket = io();
        const statusElement = document.getElementById('connectionStatus');

        document.getElementById('darkToggle').addEventListener('click', () => {
            document.body.classList.toggle('dark');
        });

        socket.on('connect', () => {
            statusElement.textContent = 'Connected';
            statusElement.className = 'connection-status connected';
            socket.emit('request_update');
        });

        socket.on('disconnect', () => {
            statusElement.textContent = 'Disconnected';
            statusElement.className = 'connection-status disconnected';
        });

        socket.on('dashboard_update', (view) => {
            renderState(view.state);
            renderCards(view.cards);
            view.charts.forEach((chart, index) => renderChart(chart, index));
            renderHealth(view.health);
        });

        function renderState(state) {
            document.getElementById('lastUpdated').textContent =
                state.last_updated ? state.last_updated : '-';
            document.getElementById('loadError').textContent =
                state.load_error ? `(${state.load_error})` : '';
            const streamError = document.getElementById('streamError');
            streamError.textContent = state.error || '';
            streamError.style.display = state.error ? 'block' : 'none';
        }

        function renderCards(cards) {
            const container = document.getElementById('cards');
            container.innerHTML = '';
            cards.forEach(card => {
                const div = document.createElement('div');
                div.className = 'card';
                div.style.borderLeftColor = card.color;
                const value = card.is_loading
                    ? '<span class="loading-placeholder"></span>'
                    : `${card.value.toFixed(2)}`;
                const badge = card.show_status && card.status
                    ? `<div class="badge badge-${card.status_color}" title="${card.status_error || ''}">${card.status}</div>`
                    : '';
                div.innerHTML = `
                    <h3>${card.title}</h3>
                    <span class="metric-value">${value}</span><span class="metric-unit">${card.unit}</span>
                    ${badge}
                `;
                container.appendChild(div);
            });
        }

        function renderChart(chart, index) {
            document.getElementById(`chartTitle${index}`).textContent = chart.title;

            const trace = {
                x: chart.x,
                y: chart.y,
                name: chart.title,
                type: 'scatter',
                mode: 'lines',
                line: { color: chart.color, width: 2 },
                fill: chart.chart_type === 'area' ? 'tozeroy' : 'none'
            };

            const shapes = chart.reference_lines.map(line => ({
                type: 'line',
                xref: 'paper',
                x0: 0,
                x1: 1,
                y0: line.value,
                y1: line.value,
                line: { color: line.color, dash: 'dash', width: 1 }
            }));

            const legend = chart.legend_items.map(item => ({
                x: [null],
                y: [null],
                name: item.label,
                type: 'scatter',
                mode: 'lines',
                line: { color: item.color }
            }));

            const layout = {
                xaxis: { title: 'Time', type: 'category' },
                yaxis: { title: chart.unit, range: chart.y_axis_domain || undefined },
                height: 280,
                margin: { t: 10, r: 20, b: 40, l: 50 },
                showlegend: legend.length > 0,
                shapes: shapes
            };

            Plotly.react(`chart${index}`, [trace, ...legend], layout, {responsive: true});
        }

        function renderHealth(items) {
            const container = document.getElementById('health');
            container.innerHTML = '';
            items.forEach(item => {
                const div = document.createElement('div');
                div.innerHTML = `
                    <div class="dot dot-${item.color}"></div>
                    <strong>${item.label}</strong>
                    <div class="badge badge-${item.color}">${item.status}</div>
                `;
                container.appendChild(div);
            });
        }

        // Fallback polling in case the socket is blocked by a proxy
        setInterval(() => {
            if (!socket.connected) {
                fetch('/api/view')
                    .then(response => response.json())
                    .then(view => socket.listeners('dashboard_update').forEach(fn => fn(view)));
            }
        }, {{ update_interval_ms }});
    </script>
</body>
</html>
'''
