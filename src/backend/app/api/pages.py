"""Browser dashboard page.

The page is static: it renders the view model from /api/v1/dashboard and
posts operator actions to the control endpoints.
"""

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

router = APIRouter()

DASHBOARD_HTML = r"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>Agri IoT Dashboard</title>
  <style>
    :root {
      --forest: #2f5d3a;
      --parchment: #f5f1e6;
      --ink: #333333;
      --muted: #6b7280;
    }
    body { margin: 0; background: var(--parchment); color: var(--ink); font-family: system-ui, sans-serif; }
    header { background: var(--forest); color: #fff; padding: 24px; border-radius: 0 0 12px 12px; text-align: center; }
    header h1 { margin: 0; font-size: 2rem; }
    main { padding: 24px; max-width: 1200px; margin: 0 auto; }
    .grid { display: grid; grid-template-columns: repeat(auto-fit, minmax(360px, 1fr)); gap: 24px; }
    .card { background: #fff; border-radius: 12px; box-shadow: 0 2px 6px rgba(0,0,0,0.08); padding: 20px; margin-bottom: 24px; }
    .card h2 { margin-top: 0; color: var(--forest); }
    .snapshot { display: grid; grid-template-columns: 1fr 1fr; gap: 12px; font-size: 0.9rem; }
    .row { display: flex; flex-wrap: wrap; gap: 16px; margin-bottom: 16px; }
    label.field { display: flex; flex-direction: column; font-size: 0.85rem; gap: 4px; }
    input, select { padding: 6px 8px; border: 1px solid #d1d5db; border-radius: 6px; }
    button { background: var(--forest); color: #fff; border: 0; border-radius: 8px; padding: 8px 16px; cursor: pointer; }
    .banner-success { background: #16a34a; color: #fff; padding: 8px 16px; border-radius: 8px; text-align: center; margin-top: 16px; }
    .error { color: #dc2626; padding: 24px; }
    .muted { color: var(--muted); font-size: 0.85rem; }
    .charts { display: grid; grid-template-columns: repeat(auto-fit, minmax(320px, 1fr)); gap: 16px; }
    canvas { width: 100%; height: 180px; }
    pre { background: #f3f4f6; padding: 12px; border-radius: 6px; overflow-x: auto; }
    [hidden] { display: none !important; }
  </style>
</head>
<body>
  <div id="status" class="muted" style="padding:24px">Loading...</div>
  <div id="app" hidden>
    <header>
      <h1>Agri IoT Dashboard</h1>
      <p>Latest packet received at: <strong id="packet-time">--</strong></p>
    </header>
    <main>
      <section class="card">
        <div style="display:flex;justify-content:space-between;align-items:center">
          <h2>Telemetry Charts</h2>
          <button id="chart-toggle" type="button">Show Charts</button>
        </div>
        <div id="charts" class="charts" hidden></div>
      </section>

      <div class="grid">
        <section class="card">
          <h2>Gateway Snapshot</h2>
          <div id="snapshot" class="snapshot"></div>
          <p id="pending" class="muted"></p>
        </section>

        <section class="card">
          <h2>Control Panel</h2>
          <h3 class="muted">System Modes</h3>
          <div class="row">
            <label><input type="checkbox" data-toggle="auto_mode" /> Auto mode</label>
            <label><input type="checkbox" data-toggle="tank_pump" /> Tank pump</label>
            <label><input type="checkbox" data-toggle="irr_pump" /> Irr pump</label>
          </div>
          <div class="row">
            <label class="field">Soil Moisture Threshold (%)
              <input type="number" data-control="soil_threshold" />
            </label>
            <label class="field">Poll Interval (seconds)
              <input type="number" data-control="poll_interval" />
            </label>
          </div>
          <h3 class="muted">Irrigation Schedule</h3>
          <div class="row">
            <label><input type="checkbox" data-schedule="enabled" /> Enable Schedule</label>
            <label class="field">Start Time <input type="time" data-schedule="start_time" /></label>
            <label class="field">Duration (min) <input type="number" data-schedule="duration_min" /></label>
            <label class="field">Repeat
              <select data-schedule="repeat">
                <option value="daily">Daily</option>
                <option value="weekly">Weekly</option>
                <option value="none">None</option>
              </select>
            </label>
          </div>
          <div style="text-align:right"><button id="submit" type="button">Update</button></div>
          <div id="success" class="banner-success" hidden></div>
          <details style="margin-top:24px">
            <summary class="muted">Debug: Telemetry JSON</summary>
            <pre id="debug"></pre>
          </details>
        </section>
      </div>
    </main>
  </div>

  <script>
    (function () {
      var API = "/api/v1";
      var REFRESH_MS = 5000;
      var COLORS = ["#dc2626", "#2563eb", "#16a34a", "#ca8a04"];

      function send(method, path, body) {
        var options = { method: method, headers: { "Content-Type": "application/json" } };
        if (body !== undefined) { options.body = JSON.stringify(body); }
        return fetch(API + path, options).then(function (res) {
          return res.json().then(function (data) {
            if (!res.ok) { throw new Error((data && data.detail) || res.statusText); }
            return data;
          });
        });
      }

      function drawChart(canvas, chart, color) {
        var ctx = canvas.getContext("2d");
        var width = canvas.width = canvas.clientWidth;
        var height = canvas.height = canvas.clientHeight;
        ctx.clearRect(0, 0, width, height);
        ctx.fillStyle = "#374151";
        ctx.fillText(chart.label, 8, 14);
        var points = chart.points;
        if (points.length < 2) { ctx.fillText("No data", 8, 32); return; }
        var times = points.map(function (p) { return p.time; });
        var values = points.map(function (p) { return p.value; });
        var tMin = Math.min.apply(null, times), tMax = Math.max.apply(null, times);
        var vMin = Math.min.apply(null, values), vMax = Math.max.apply(null, values);
        var tSpan = (tMax - tMin) || 1, vSpan = (vMax - vMin) || 1;
        ctx.strokeStyle = color;
        ctx.lineWidth = 2;
        ctx.beginPath();
        points.forEach(function (p, i) {
          var x = 8 + (p.time - tMin) / tSpan * (width - 16);
          var y = height - 8 - (p.value - vMin) / vSpan * (height - 32);
          if (i === 0) { ctx.moveTo(x, y); } else { ctx.lineTo(x, y); }
        });
        ctx.stroke();
        ctx.fillText(new Date(tMax).toLocaleTimeString(), width - 80, height - 2);
      }

      function renderCharts(panel) {
        var container = document.getElementById("charts");
        document.getElementById("chart-toggle").textContent = panel.toggle_label;
        container.hidden = !panel.visible;
        if (!panel.visible) { return; }
        container.replaceChildren();
        panel.charts.forEach(function (chart, i) {
          var canvas = document.createElement("canvas");
          container.appendChild(canvas);
          drawChart(canvas, chart, COLORS[i % COLORS.length]);
        });
      }

      function renderControls(controls) {
        document.querySelectorAll("[data-toggle]").forEach(function (el) {
          el.checked = controls[el.dataset.toggle];
        });
        document.querySelectorAll("[data-control]").forEach(function (el) {
          if (document.activeElement !== el) { el.value = controls[el.dataset.control]; }
        });
        document.querySelectorAll("[data-schedule]").forEach(function (el) {
          var value = controls.irrigation_schedule[el.dataset.schedule];
          if (el.type === "checkbox") { el.checked = value; }
          else if (document.activeElement !== el) { el.value = value; }
        });
      }

      function render(view) {
        var status = document.getElementById("status");
        var app = document.getElementById("app");
        if (view.status !== "ready") {
          status.textContent = view.message;
          status.className = view.status === "error" ? "error" : "muted";
          status.hidden = false;
          app.hidden = true;
          return;
        }
        status.hidden = true;
        app.hidden = false;
        document.getElementById("packet-time").textContent = view.header.latest_packet_at || "--";
        var snapshot = document.getElementById("snapshot");
        snapshot.replaceChildren();
        view.snapshot.forEach(function (entry) {
          var row = document.createElement("div");
          var value = document.createElement("strong");
          row.textContent = entry.label + ": ";
          value.textContent = entry.value;
          row.appendChild(value);
          snapshot.appendChild(row);
        });
        document.getElementById("pending").textContent = view.pending ? view.pending.diff_summary : "";
        document.getElementById("debug").textContent = JSON.stringify(view.debug_telemetry, null, 2);
        var success = document.getElementById("success");
        success.textContent = view.banners.success.message;
        success.hidden = !view.banners.success.visible;
        renderControls(view.controls);
        renderCharts(view.chart_panel);
      }

      function reload() {
        return send("GET", "/dashboard").then(render).catch(function (err) {
          console.error("[Dashboard] refresh failed", err);
        });
      }

      document.querySelectorAll("[data-toggle]").forEach(function (el) {
        el.addEventListener("change", function () {
          send("POST", "/controls/toggle/" + el.dataset.toggle).then(reload);
        });
      });
      document.querySelectorAll("[data-control]").forEach(function (el) {
        el.addEventListener("change", function () {
          var body = {};
          body[el.dataset.control] = el.value;
          send("PATCH", "/controls", body).then(reload);
        });
      });
      document.querySelectorAll("[data-schedule]").forEach(function (el) {
        el.addEventListener("change", function () {
          var body = {};
          body[el.dataset.schedule] = el.type === "checkbox" ? el.checked : el.value;
          send("PATCH", "/controls/schedule", body).then(reload);
        });
      });
      document.getElementById("chart-toggle").addEventListener("click", function () {
        send("POST", "/dashboard/charts/toggle").then(reload);
      });
      document.getElementById("submit").addEventListener("click", function () {
        send("POST", "/controls/submit").then(reload).catch(function (err) {
          console.error("[Dashboard] shadow update failed", err);
          alert("Failed to update shadow");
        });
      });

      reload();
      setInterval(reload, REFRESH_MS);
    })();
  </script>
</body>
</html>
"""


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def dashboard_page() -> HTMLResponse:
    """Serve the browser dashboard."""
    return HTMLResponse(content=DASHBOARD_HTML)
