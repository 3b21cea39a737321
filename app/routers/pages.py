from html import escape

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.dependencies.auth import get_current_user, require_page_user, session_user
from app.services.accounts import get_user

router = APIRouter(tags=["pages"])


def _route_page(user_name: str) -> str:
    return f"""
<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1.0" />
  <title>Route Optimizer</title>
  <link rel="stylesheet" href="https://unpkg.com/leaflet@1.9.4/dist/leaflet.css" crossorigin="" />
  <style>
    html, body {{ height: 100%; margin: 0; font-family: Inter, Arial, sans-serif; }}
    #map {{ position: absolute; inset: 0; }}
    #panel {{ position: absolute; top: 12px; left: 12px; z-index: 1000; background: white; padding: 14px;
              border-radius: 10px; box-shadow: 0 10px 30px rgba(2,6,23,0.12); width: 340px; }}
    #panel input {{ width: 100%; padding: 8px; margin: 4px 0; box-sizing: border-box; }}
    #info div {{ margin-top: 6px; font-size: 13px; color: #52606d; }}
  </style>
</head>
<body>
<div id="map"></div>
<div id="panel">
  <div>Signed in as <strong>{escape(user_name)}</strong> &middot; <a href="/logout">Logout</a></div>
  <form id="routeForm" autocomplete="off">
    <input name="from" placeholder="From" required />
    <input name="to" placeholder="To" required />
    <button type="submit">Find routes</button>
  </form>
  <div id="info"></div>
</div>
<script src="https://unpkg.com/leaflet@1.9.4/dist/leaflet.js" crossorigin=""></script>
<script>
  const map = L.map('map').setView([20, 0], 2);
  L.tileLayer('https://{{s}}.tile.openstreetmap.org/{{z}}/{{x}}/{{y}}.png', {{
    maxZoom: 19,
    attribution: '&copy; OpenStreetMap contributors'
  }}).addTo(map);
  let routeLayer = null;
  const info = document.getElementById('info');
  // Place names come from the geocoder; never render them as HTML
  const textPopup = (text) => {{ const el = document.createElement('span'); el.textContent = text; return el; }};

  document.getElementById('routeForm').addEventListener('submit', async (e) => {{
    e.preventDefault();
    const form = new FormData(e.target);
    const body = {{ from: form.get('from'), to: form.get('to') }};
    info.textContent = 'Finding routes...';
    const res = await fetch('/route', {{ method: 'POST', headers: {{ 'Content-Type': 'application/json' }}, body: JSON.stringify(body) }});
    const data = await res.json();
    if (!res.ok) {{ info.textContent = data.error || 'Routing error'; return; }}
    if (routeLayer) routeLayer.remove();
    routeLayer = L.featureGroup().addTo(map);
    const best = data.bestRouteIndex;
    data.routes.forEach((r, i) => {{
      const style = i === best ? {{ color: '#16a34a', weight: 6 }} : {{ color: '#64748b', weight: 4, dashArray: '6 6' }};
      L.geoJSON(r.geometry, {{ style }}).addTo(routeLayer);
    }});
    L.marker([data.origin.lat, data.origin.lon]).bindPopup(textPopup(data.origin.display_name)).addTo(routeLayer);
    L.marker([data.destination.lat, data.destination.lon]).bindPopup(textPopup(data.destination.display_name)).addTo(routeLayer);
    map.fitBounds(routeLayer.getBounds(), {{ padding: [40, 40] }});
    info.innerHTML = data.routes.map((r, i) =>
      `<div>${{i === best ? '<strong>BEST</strong>' : '#'}} Route ${{i + 1}}: ${{(r.distance / 1000).toFixed(2)}} km, ${{Math.round(r.duration / 60)}} min</div>`
    ).join('');
  }});
</script>
</body>
</html>
"""


def _simple_page(title: str, body: str) -> str:
    return f"""
<!doctype html>
<html>
<head><meta charset="utf-8"><title>{title}</title></head>
<body style="font-family:Inter,Arial,sans-serif;padding:24px">
  <h2>{title}</h2>
  {body}
  <p><a href="/">Back</a></p>
</body>
</html>
"""


@router.get("/", response_class=HTMLResponse)
async def index(request: Request):
    user = session_user(request)
    if user is None:
        return RedirectResponse(url="/login", status_code=status.HTTP_303_SEE_OTHER)
    return HTMLResponse(content=_route_page(user["name"] or ""))


@router.get("/profile", response_class=HTMLResponse)
async def profile(user: dict = Depends(require_page_user)):
    return HTMLResponse(content=_simple_page("Profile", f"<p>Profile management for {escape(user['name'] or '')}</p>"))


@router.get("/settings", response_class=HTMLResponse)
async def settings_page(user: dict = Depends(require_page_user)):
    return HTMLResponse(content=_simple_page("Settings", "<p>Settings page (placeholder)</p>"))


@router.get("/api/v1/me")
async def me(user: dict = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    record = await get_user(db, user["id"])
    if record is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return {"id": record.id, "email": record.email, "name": record.display_name}
