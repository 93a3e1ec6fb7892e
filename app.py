# app.py
import logging
import streamlit as st
from PyQt5.QtCore import QCoreApplication

from config import DIRECTIONS, EXCLUDE, INCLUDE, MEASURES
from engine import GraphEngine
from plot_figure import build_figure
import storage

logging.basicConfig(level=logging.INFO)

# QObject signals need an application instance; no event loop is run here,
# so analytics use the synchronous pass.
_qt_app = QCoreApplication.instance() or QCoreApplication([])

st.set_page_config(page_title="Weighted Graph Canvas (Web)", layout="wide")

# Session state
if 'engine' not in st.session_state:
    st.session_state.engine = GraphEngine()

eng: GraphEngine = st.session_state.engine

def node_label(node_id):
    n = eng.graph.getNode(node_id)
    return n.getLabel() if n else node_id

# UI
col_btns, col_plot = st.columns([1, 4], gap="large")

with col_btns:
    st.markdown("### Controls")
    c1, c2, c3 = st.columns(3)
    if c1.button("Undo", disabled=not eng.canUndo()):
        eng.undo()
    if c2.button("Redo", disabled=not eng.canRedo()):
        eng.redo()
    if c3.button("New"):
        eng.newGraph()

    with st.expander("Add node"):
        with st.form("add_node", clear_on_submit=True):
            x = st.number_input("x", value=0.0)
            y = st.number_input("y", value=0.0)
            label = st.text_input("Label")
            secondary = st.text_input("Secondary label")
            category = st.text_input("Layer")
            color = st.color_picker("Color", eng.config.defaults.color)
            if st.form_submit_button("Add"):
                eng.createNode(x, y, label or None, color, category or None, None, secondary or None)

    ids = [n.id for n in eng.graph.getNodes()]
    if len(ids) >= 2:
        with st.expander("Add / update edge"):
            with st.form("add_edge"):
                a = st.selectbox("From", ids, format_func=node_label, key="edge_from")
                b = st.selectbox("To", ids, format_func=node_label, key="edge_to")
                weight = st.slider("Weight (distance)", eng.config.defaults.weight_min,
                                   eng.config.defaults.weight_max, eng.config.defaults.weight)
                direction = st.selectbox("Direction", DIRECTIONS)
                if st.form_submit_button("Connect"):
                    if eng.createEdge(a, b, weight, None, direction) is None:
                        st.error("An edge needs two different nodes.")

    if ids:
        with st.expander("Delete node"):
            victim = st.selectbox("Node", ids, format_func=node_label, key="victim")
            if st.button("Delete"):
                eng.deleteNode(victim)
    st.divider()

    # Layers
    layers = eng.allLayers()
    if layers:
        mode = st.radio("Layer filter", [INCLUDE, EXCLUDE], horizontal=True,
                        index=[INCLUDE, EXCLUDE].index(eng.layers.getMode()))
        active = st.multiselect("Active layers", layers,
                                default=[l for l in eng.layers.activeLayers() if l in layers])
        eng.setLayerFilterMode(mode)
        eng.setActiveLayers(active)

    # Analytics
    if st.button("Compute Centralities"):
        eng.recomputeAnalytics()
    measure = st.selectbox("Color by", ["(node color)"] + list(MEASURES))
    query = st.text_input("Search")
    if query.strip():
        hits = eng.searchNodes(query)
        eng.highlightNodes(n.id for n in hits)
        st.caption(", ".join(n.getLabel() for n in hits) or "No matches")
    else:
        eng.clearHighlights()
    st.divider()

    # Filters
    if st.checkbox("Centrality filter"):
        f_measure = st.selectbox("Measure", MEASURES, key="filter_measure")
        lo = st.number_input("Min", value=0.0, key="filter_min")
        hi = st.number_input("Max", value=1.0, key="filter_max")
        if not eng.applyCentralityFilter(f_measure, lo, hi):
            st.error("Min must not exceed max.")
    elif eng.centralityFilter.isEnabled():
        eng.clearCentralityFilter()
    if ids and st.checkbox("Local graph view"):
        center = st.selectbox("Center", ids, format_func=node_label, key="local_center")
        local_dist = st.number_input("Max distance", min_value=0.0, value=10.0, key="local_dist")
        local_depth = st.number_input("Max depth", min_value=1, value=5, step=1, key="local_depth")
        if eng.applyLocalGraphFilter(center, local_dist, local_depth) is None:
            eng.clearLocalGraphFilter()
            st.caption("No nodes within the specified distance.")
    elif eng.localFilter.isEnabled():
        eng.clearLocalGraphFilter()
    st.divider()

    # File
    st.download_button("Download JSON", storage.snapshot_to_json(eng.exportSnapshot()),
                       file_name="graph.json", mime="application/json")
    upload = st.file_uploader("Load JSON", type=["json"])
    if upload is not None and st.button("Replace graph with upload"):
        data = storage.snapshot_from_json(upload.getvalue().decode("utf-8", errors="replace"))
        if data is None:
            st.error("Could not load the graph.")
        else:
            eng.importSnapshot(data, undoable=True)
    st.divider()

    # Info
    stats = eng.stats()
    st.markdown(
        f"Nodes: {stats['nodes']}  \n"
        f"Edges: {stats['edges']}  \n"
        f"Avg connections: {stats['avg_connections']:.2f}  \n"
        f"Isolated: {stats['isolated_nodes']}, Components: {stats['components']}"
    )

with col_plot:
    fig = build_figure(eng, None if measure == "(node color)" else measure)
    st.plotly_chart(fig, use_container_width=True)

    if ids:
        focus = st.selectbox("Inspect node", ids, format_func=node_label, key="focus")
        conns = eng.connections(focus)
        cols = st.columns(3)
        for col, key in zip(cols, ("outgoing", "incoming", "bidirectional")):
            col.markdown(f"**{key.capitalize()}**")
            for c in conns[key]:
                col.write(f"{c.node.getLabel()} (w={c.edge.getWeight():g})")
        scores = eng.graph.getNode(focus).getCentrality()
        if scores:
            st.table([{"measure": m, "score": round(scores[m], 4), "rank": eng.rank(focus, m)}
                      for m in MEASURES if m in scores])
        result = eng.analyzeDistances(focus, st.slider("Max distance", 1, 100, 10),
                                      st.slider("Max depth", 1, 20, 5))
        if result and result["nodes"]:
            st.dataframe([{k: r[k] for k in ("label", "distance", "depth")} for r in result["nodes"]])
