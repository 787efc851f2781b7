"""Static panel page.  The page talks to the host over ``/ws``."""

from __future__ import annotations

import html

from webview.commands import PROTOCOL_VERSION

_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{title}</title>
</head>
<body data-protocol="{protocol}">
<h1>{title}</h1>
<section id="api-key">
  <input id="api-key-input" type="password" placeholder="OpenAI API key">
  <button data-command="save-api-key">Save</button>
  <span id="api-key-hint"></span>
</section>
<section id="prd">
  <textarea id="prd-input" rows="8" placeholder="Describe your product idea"></textarea>
  <button data-command="generate-prd">Generate PRD</button>
  <button data-command="cancel-generation">Cancel</button>
  <button data-command="view-prd" data-requires="hasPRD">View PRD</button>
  <button data-command="view-graph" data-requires="hasPRD">View Graph</button>
</section>
<section id="artifacts">
  <button data-command="generate-context-cards">Generate Context Cards</button>
  <button data-command="generate-data-flow-diagram">Data Flow Diagram</button>
  <button data-command="generate-component-hierarchy">Component Hierarchy</button>
  <button data-command="view-data-flow-diagram" data-requires="hasDataFlowDiagram">View Data Flow</button>
  <button data-command="view-component-hierarchy" data-requires="hasComponentHierarchy">View Hierarchy</button>
  <button data-command="view-context-cards" data-requires="hasContextCards">View Context Cards</button>
</section>
<progress id="progress" max="100" value="0"></progress>
<pre id="log"></pre>
<script>
const ws = new WebSocket(`ws://${{location.host}}/ws`);
const log = (t) => {{ document.getElementById("log").textContent += t + "\\n"; }};
ws.onopen = () => ws.send(JSON.stringify({{command: "webviewReady"}}));
ws.onmessage = (ev) => {{
  const msg = JSON.parse(ev.data);
  if (["prdGenerated", "diagramGenerated", "contextCardsGenerated"].includes(msg.command)) {{
    ws.send(JSON.stringify({{command: "webviewReady"}}));
  }}
  if (msg.command === "apiKeyStatus") {{
    document.getElementById("api-key-hint").textContent = msg.present ? msg.hint : "not set";
  }} else if (msg.command === "project-state-update") {{
    document.querySelectorAll("button[data-requires]").forEach((b) => {{
      b.hidden = !msg.projectState[b.dataset.requires];
    }});
  }} else if (msg.command === "progress") {{
    document.getElementById("progress").value = msg.percent;
    log(msg.message);
  }} else if (msg.command === "quickPick") {{
    const choice = window.prompt(msg.title + "\\n" + msg.items.join("\\n"));
    ws.send(JSON.stringify({{command: "quickPickResult", requestId: msg.requestId, selection: choice}}));
  }} else {{
    log(JSON.stringify(msg));
  }}
}};
document.querySelectorAll("button[data-command]").forEach((b) => b.onclick = () => {{
  const msg = {{command: b.dataset.command}};
  if (msg.command === "save-api-key") msg.apiKey = document.getElementById("api-key-input").value;
  if (msg.command === "generate-prd") msg.text = document.getElementById("prd-input").value;
  ws.send(JSON.stringify(msg));
}});
</script>
</body>
</html>
"""


def render_panel_html(title: str) -> str:
    return _TEMPLATE.format(title=html.escape(title), protocol=PROTOCOL_VERSION)
