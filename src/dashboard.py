import os
import streamlit as st
import requests
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

# Adres API
API_URL = os.getenv("API_URL", "http://127.0.0.1:8000")

st.set_page_config(page_title="Seating Plan - Plan Stołów", layout="wide")

st.title("💍 Plan Stołów: Ceremonia i Bankiet")
st.markdown("Generowanie siatek, edycja stołów i podgląd przypisanych gości.")


def api(method, path, **kwargs):
    try:
        res = requests.request(method, f"{API_URL}{path}", timeout=10, **kwargs)
        res.raise_for_status()
        return res.json()
    except requests.RequestException as e:
        st.error(f"Błąd API: {e}")
        return None


def cell(value):
    # Komórki z data_editor: NaN -> None, typy numpy -> zwykłe int/float
    if pd.isna(value):
        return None
    if hasattr(value, "item"):
        value = value.item()
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


# --- 1. WIZUALIZACJA PLANU ---
def draw_plan(state, occupancy):
    tab = state["tab"]
    hall = state["hall_size"]
    fig = go.Figure()
    colors = px.colors.qualitative.Pastel

    # Obrys sali
    fig.add_shape(type="rect", x0=0, y0=0, x1=hall["width"], y1=hall["height"], line=dict(color="gray", dash="dot"))

    for idx, area in enumerate(state["areas"][tab]):
        pts = area["points"]
        if len(pts) < 2: continue
        xs = [p["x"] for p in pts] + [pts[0]["x"]]
        ys = [p["y"] for p in pts] + [pts[0]["y"]]
        fig.add_trace(go.Scatter(x=xs, y=ys, fill="toself", mode="lines", opacity=0.4,
                                 line=dict(color=colors[idx % len(colors)]), name=f"Obszar {area['id']}"))

    if tab == "ceremony" and state["seats"]:
        seats = state["seats"]
        fig.add_trace(go.Scatter(
            x=[s["x"] for s in seats], y=[s["y"] for s in seats], mode="markers",
            marker=dict(size=10, symbol="square",
                        color=["#2563eb" if s.get("guestId") else ("#9ca3af" if not s["enabled"] else "#fde68a") for s in seats],
                        line=dict(width=1, color="#f59e0b")),
            hovertext=[f"Krzesło {s['id']}: {s.get('guestName') or '-'}" for s in seats], name="Krzesła"
        ))

    occ_by_id = {str(o["table_id"]): o for o in occupancy or []}
    for table in state["tables"][tab]:
        if table["shape"] == "circle":
            w = h = table.get("diameter") or 60
        else:
            w, h = table.get("width") or 80, table.get("height") or 60
        x0, y0 = table["x"] - w / 2, table["y"] - h / 2
        fill = "#e5e7eb" if not table["enabled"] else "#fef3c7"
        shape_type = "circle" if table["shape"] == "circle" else "rect"
        fig.add_shape(type=shape_type, x0=x0, y0=y0, x1=x0 + w, y1=y0 + h, fillcolor=fill, line_color="#f59e0b")

        occ = occ_by_id.get(str(table["id"]))
        count = occ["count"] if occ else 0
        fig.add_annotation(x=table["x"], y=table["y"], text=f"{table['name']}<br>({count}/{table['seats']})",
                           showarrow=False, font=dict(size=11))

        if occ and occ["markers"]:
            fig.add_trace(go.Scatter(
                x=[x0 + m[0] for m in occ["markers"]], y=[y0 + m[1] for m in occ["markers"]],
                mode="markers+text", text=occ["labels"], textposition="middle center",
                marker=dict(size=22, color="#2563eb"), textfont=dict(color="white", size=9),
                showlegend=False
            ))

    fig.update_layout(height=700, plot_bgcolor="white", showlegend=False,
                      xaxis=dict(visible=False, range=[0, hall["width"]]),
                      yaxis=dict(visible=False, range=[hall["height"], 0], scaleanchor="x"))
    return fig


# --- SIDEBAR ---
with st.sidebar:
    st.header("🎛️ Panel Sterowania")
    event_id = st.text_input("ID wesela", value=st.session_state.get("event_id", "demo"))

    if st.button("📂 Otwórz plan") or st.session_state.get("event_id") != event_id:
        if api("post", f"/events/{event_id}/open") is not None:
            st.session_state["event_id"] = event_id

    tab = st.radio("Zakładka", ["ceremony", "banquet"], format_func=lambda t: "Ceremonia" if t == "ceremony" else "Bankiet")
    # Tylko przy zmianie - undo może przełączyć zakładkę po stronie API
    if st.session_state.get("tab") != tab:
        if api("post", f"/events/{event_id}/tab", json={"tab": tab}) is not None:
            st.session_state["tab"] = tab

    st.divider()
    if tab == "ceremony":
        st.subheader("Siatka krzeseł")
        rows = st.number_input("Rzędy", 1, 20, 10)
        cols = st.number_input("Kolumny", 1, 30, 12)
        gap = st.number_input("Odstęp (cm)", 20, 100, 40)
        aisle = st.number_input("Przejście po kolumnie", 0, int(cols), min(6, int(cols)))
        if st.button("Generuj krzesła"):
            api("post", f"/events/{event_id}/ceremony/grid",
                json={"rows": rows, "cols": cols, "gap": gap, "startX": 100, "startY": 80, "aisleAfter": aisle})
    else:
        st.subheader("Układ stołów")
        rows = st.number_input("Rzędy", 1, 10, 3)
        cols = st.number_input("Kolumny", 1, 15, 4)
        seats = st.number_input("Miejsca przy stole", 2, 20, 8)
        gap_x = st.number_input("Odstęp X (cm)", 80, 300, 140)
        gap_y = st.number_input("Odstęp Y (cm)", 80, 300, 160)
        if st.button("Generuj stoły"):
            api("post", f"/events/{event_id}/banquet/layout",
                json={"rows": rows, "cols": cols, "seats": seats, "gapX": gap_x, "gapY": gap_y})

    templates = api("get", "/templates") or []
    if templates:
        tpl = st.selectbox("Szablon", [t["id"] for t in templates],
                           format_func=lambda tid: next(t["name"] for t in templates if t["id"] == tid))
        if st.button("Zastosuj szablon"):
            api("post", f"/events/{event_id}/templates/{tpl}")

    st.divider()
    st.subheader("Sala")
    hall = api("get", f"/events/{event_id}/hall") or {"width": 1800, "height": 1200}
    hall_w = st.number_input("Szerokość (cm)", 200, 5000, int(hall["width"]))
    hall_h = st.number_input("Długość (cm)", 200, 5000, int(hall["height"]))
    if st.button("💾 Zapisz wymiary"):
        api("put", f"/events/{event_id}/hall", json={"width": hall_w, "height": hall_h})

    c1, c2 = st.columns(2)
    if c1.button("↩️ Cofnij"):
        api("post", f"/events/{event_id}/undo")
    if c2.button("↪️ Ponów"):
        api("post", f"/events/{event_id}/redo")

    if st.button("💾 Zapisz plan"):
        res = api("post", f"/events/{event_id}/layout/save")
        if res and all(res["saved"].values()):
            st.success("Zapisano!")

# --- WIDOK GŁÓWNY ---
state = api("get", f"/events/{event_id}/plan")

if state:
    c1, c2, c3 = st.columns(3)
    c1.metric("Krzesła", len(state["seats"]))
    c2.metric("Stoły", len(state["tables"][state["tab"]]))
    c3.metric("Historia", state["history_size"])

    st.write("**Lista gości** (tableId / table / companion)")
    if "guests_df" not in st.session_state:
        st.session_state["guests_df"] = pd.DataFrame([
            {"id": "g1", "name": "Ana García", "tableId": 1, "table": None, "companion": 1},
            {"id": "g2", "name": "Luis Pérez", "tableId": None, "table": "Mesa 2", "companion": 0},
        ])
    edited = st.data_editor(st.session_state["guests_df"], num_rows="dynamic", hide_index=True)

    guests = [{k: cell(row[k]) for k in ("id", "name", "tableId", "table", "companion")}
              for _, row in edited.iterrows()]

    zoom = st.slider("Powiększenie etykiet", 0.5, 3.0, 1.0)
    occupancy = api("post", f"/events/{event_id}/occupancy", json={"guests": guests, "scale": zoom})
    st.plotly_chart(draw_plan(state, occupancy), use_container_width=True)

    if occupancy:
        st.dataframe(pd.DataFrame([
            {"Stół": o["name"], "Osoby": o["count"], "Miejsca": o["capacity"], "Goście": ", ".join(o["labels"])}
            for o in occupancy
        ]))
else:
    st.info("👈 Otwórz plan w menu po lewej.")
