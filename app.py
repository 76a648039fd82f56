"""
Memory Management Visualizer — Contiguous Allocation

This application provides an interactive simulation and visualization of
contiguous memory allocation in an Operating System, including:
    - First-Fit, Best-Fit and Worst-Fit dynamic partitioning
    - Fixed partitioning (256 KB partitions)
    - Coalescing of adjacent free blocks
    - A waiting queue for requests that cannot be placed yet

Built with Streamlit for the web interface and Plotly for visualizations.
The allocation logic itself lives in engine.py; this file only renders
engine state and forwards user actions to it.
"""

# =============================================================================
# IMPORTS
# =============================================================================

import random                                # Seeded RNG for the random workload
import streamlit as st                       # Web application framework
import plotly.graph_objects as go            # Interactive plotting library

from engine import (
    DEFAULT_TOTAL_KB,
    FIXED_PARTITION_KB,
    Algorithm,
    MemoryEngine,
    RetryPolicy,
)
from utils import block_label, get_color
from workload import random_step


# =============================================================================
# SESSION HELPERS
# =============================================================================

def get_engine(total_kb: int, retry_policy: RetryPolicy, partition_on_demand: bool) -> MemoryEngine:
    """
    Return the engine kept in session state, rebuilding it when the memory
    size changes.

    Args:
        total_kb (int): Requested memory size in KB
        retry_policy (RetryPolicy): How the waiting queue is retried after a free
        partition_on_demand (bool): Carve fixed partitions on first use

    Returns:
        MemoryEngine: The engine for this browser session
    """
    engine = st.session_state.get("engine")
    if engine is None or engine.total_size != total_kb:
        engine = MemoryEngine(total_kb)
        st.session_state.engine = engine
        st.session_state.rng = random.Random()
    engine.set_retry_policy(retry_policy)
    engine.partition_on_demand = partition_on_demand
    return engine


def memory_map_figure(view) -> go.Figure:
    """
    Build a horizontal stacked bar: one segment per block, left to right by
    start address, sized in KB.
    """
    fig = go.Figure()
    for block in view.blocks:
        label = block_label(block)
        fig.add_trace(go.Bar(
            x=[block.size],
            y=["Memory"],
            orientation="h",
            marker_color=get_color(block.status, block.id),
            marker_line=dict(color="#333333", width=1),
            text=label,
            textposition="inside",
            hovertext=f"{label}<br>start={block.start}KB end={block.start + block.size}KB",
            hoverinfo="text",
            name=label,
        ))
    fig.update_layout(
        barmode="stack",
        height=180,
        showlegend=False,
        xaxis=dict(title="Address (KB)", range=[0, view.total_memory]),
        yaxis=dict(showticklabels=False),
        margin=dict(l=10, r=10, t=10, b=40),
    )
    return fig


# =============================================================================
# STREAMLIT UI - Web Application Interface
# =============================================================================

st.set_page_config(page_title="Memory Management Visualizer", layout="wide")

page = st.sidebar.radio("Choose View", ["Simulator", "Concepts"])

st.title("Memory Management Visualizer — Contiguous Allocation")

# =============================================================================
# CONCEPTS PAGE - Educational Content
# =============================================================================

if page == "Concepts":
    st.header("Operating System Concepts Used in This Project")
    st.markdown(
        f"""
        ## 📘 Key Concepts

        ### **1. Contiguous Allocation**
        - Each process receives a single contiguous block of memory.
        - Memory is a list of blocks that always covers the whole address range.

        ### **2. Placement Algorithms**
        - **First-Fit**: the first free block large enough.
        - **Best-Fit**: the free block that leaves the smallest leftover.
        - **Worst-Fit**: the free block that leaves the largest leftover.
        - **Fixed Partitioning**: only {FIXED_PARTITION_KB} KB partitions are
          handed out; larger requests wait.

        ### **3. Splitting and Coalescing**
        - A chosen block is shrunk to the request and the leftover becomes a
          new free block right after it.
        - When a block is freed, neighbouring free blocks merge back together.

        ### **4. Waiting Queue**
        - Requests that cannot be placed wait in FIFO order.
        - After each free, the queue is retried (head only, or the whole queue).

        ### **5. Fragmentation**
        - **External**: free memory exists but is split into small holes.
        - **Internal**: waste inside allocated blocks. Dynamic placement
          shrinks the block to the request, so only fixed partitions waste
          space (a 10 KB request still occupies a whole partition).
        """
    )
    st.stop()

# =============================================================================
# SIMULATOR PAGE - Main Interactive Interface
# =============================================================================

# -----------------------------------------------------------------------------
# SIDEBAR - Simulation Settings
# -----------------------------------------------------------------------------

st.sidebar.header("Simulation Settings")

total_kb = st.sidebar.number_input(
    "Total memory (KB)",
    min_value=64,
    max_value=65536,
    value=DEFAULT_TOTAL_KB,
    step=64,
)

algorithm = st.sidebar.selectbox(
    "Placement algorithm",
    options=list(Algorithm),
    format_func=lambda a: a.label,
)

retry_policy = st.sidebar.selectbox(
    "Queue retry after free",
    options=list(RetryPolicy),
    format_func=lambda p: "Head of queue only" if p is RetryPolicy.HEAD_ONLY else "Scan whole queue",
)

partition_on_demand = st.sidebar.checkbox(
    f"Carve {FIXED_PARTITION_KB}KB partitions on first fixed-partition request",
    value=False,
)

engine = get_engine(int(total_kb), retry_policy, partition_on_demand)

if st.sidebar.button("Reset Simulation"):
    engine.reset()
    st.sidebar.success("Simulation reset")

st.sidebar.markdown("---")

# -----------------------------------------------------------------------------
# SIDEBAR - Random Workload
# -----------------------------------------------------------------------------

st.sidebar.header("Random Workload")

sim_steps = st.sidebar.number_input("Steps", min_value=1, max_value=500, value=10)

if st.sidebar.button("Simulate"):
    rng = st.session_state.setdefault("rng", random.Random())
    done = 0
    for _ in range(int(sim_steps)):
        if random_step(engine, rng) is not None:
            done += 1
    st.sidebar.success(f"Ran {done} random operations")

st.sidebar.markdown("---")

# =============================================================================
# MAIN CONTENT AREA - Two Column Layout
# =============================================================================

col1, col2 = st.columns([1, 2])

# -----------------------------------------------------------------------------
# LEFT COLUMN - Controls and Event Log
# -----------------------------------------------------------------------------

with col1:
    st.subheader("Allocate")
    req_size = st.number_input(
        "Request size (KB)",
        min_value=1,
        max_value=int(total_kb),
        value=min(100, int(total_kb)),
    )
    if st.button("Allocate"):
        try:
            outcome = engine.allocate(int(req_size), algorithm)
            if outcome.placed:
                st.success(f"P{outcome.owner_id} placed at {outcome.start}KB")
            else:
                st.warning(f"P{outcome.owner_id} does not fit, added to waiting queue")
        except Exception as e:
            st.error(str(e))

    st.subheader("Deallocate")
    owners = engine.allocated_ids()
    if owners:
        victim = st.selectbox("Process", options=owners, format_func=lambda pid: f"P{pid}")
        if st.button("Free"):
            try:
                engine.free(victim)
                st.success(f"P{victim} freed")
            except Exception as e:
                st.error(str(e))
    else:
        st.write("No allocated processes")

    st.subheader("Event Log")
    for ev in engine.event_log[-20:][::-1]:
        st.write(ev)

# -----------------------------------------------------------------------------
# RIGHT COLUMN - Visualizations
# -----------------------------------------------------------------------------

with col2:
    view = engine.snapshot()

    st.subheader("Memory Map")
    st.plotly_chart(memory_map_figure(view), use_container_width=True)

    st.subheader("Statistics")
    metrics = engine.get_fragmentation_metrics()
    m1, m2, m3, m4, m5 = st.columns(5)
    m1.metric("Used", f"{view.used_memory} KB")
    m2.metric("Free", f"{view.free_memory} KB")
    m3.metric("Fragmented", f"{view.fragmentation:.2f}%")
    m4.metric("External frag.", metrics["external"])
    m5.metric("Utilization", metrics["utilization"])

    st.subheader("Waiting Queue (FIFO order)")
    if view.waiting_queue:
        st.table([{"process": f"P{p.id}", "size_kb": p.requested_size} for p in view.waiting_queue])
    else:
        st.write("Queue empty")

    st.subheader("Blocks")
    st.table([
        {
            "process": f"P{b.id}" if b.id is not None else "-",
            "start_kb": b.start,
            "size_kb": b.size,
            "status": b.status.value,
        }
        for b in view.blocks
    ])

# =============================================================================
# FOOTER - Usage Tips and Examples
# =============================================================================

st.markdown("---")
st.markdown(
    "**Instructor examples**:\n"
    "1) First-Fit: allocate 300 then 1000 (queued); free P1 and watch the "
    "blocks coalesce and P2 leave the queue.\n"
    "2) Compare Best-Fit and Worst-Fit after a few random steps to see how "
    "the hole sizes differ.\n"
    f"3) Fixed partitioning: any request above {FIXED_PARTITION_KB}KB waits."
)
