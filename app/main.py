import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from datetime import datetime, time as dtime

import streamlit as st
import pandas as pd
import plotly.graph_objects as go
import plotly.express as px

from budgetmill import config
from budgetmill.aggregation import top_categories
from budgetmill.categories import CategoryRegistry
from budgetmill.domain import BudgetPeriod, Period, RecurringInterval, Severity, Transaction, TransactionType
from budgetmill.errors import BudgetMillError
from budgetmill.events import BUDGET_ALERT
from budgetmill.logging_setup import configure_logging, get_logger
from budgetmill.services import BudgetService, ReportService
from budgetmill.store import TransactionStore
from budgetmill.transforms import load_seed

configure_logging()
logger = get_logger("budgetmill.app")

st.set_page_config(page_title="BudgetMill", layout="wide")

PERIOD_LABELS = {
    "Today": Period.TODAY,
    "This week": Period.THIS_WEEK,
    "This month": Period.THIS_MONTH,
    "This year": Period.THIS_YEAR,
    "All": Period.ALL,
}
SEVERITY_COLORS = {
    Severity.NORMAL: "#34C759",
    Severity.APPROACHING_LIMIT: "#FF9500",
    Severity.OVER_BUDGET: "#FF3B30",
}


def build_state():
    categories, transactions, budgets = load_seed(config.get_seed_path())
    registry = CategoryRegistry(categories)
    store = TransactionStore(registry, transactions=transactions)
    budget_service = BudgetService(store, budgets)
    alerts = []
    store.bus.subscribe(BUDGET_ALERT, lambda event, payload: alerts.append(payload))
    return {
        "registry": registry,
        "store": store,
        "budgets": budget_service,
        "reports": ReportService(store),
        "alerts": alerts,
    }


if "app_state" not in st.session_state:
    st.session_state.app_state = build_state()

state = st.session_state.app_state
registry: CategoryRegistry = state["registry"]
store: TransactionStore = state["store"]
budget_service: BudgetService = state["budgets"]
reports: ReportService = state["reports"]


def tx_to_df(tx_list):
    rows = [
        {
            "date": t.date,
            "title": t.title,
            "category": t.category.name,
            "type": t.type.value,
            "amount": float(t.signed_amount.amount),
            "note": t.note or "",
        }
        for t in tx_list
    ]
    return pd.DataFrame(rows, columns=["date", "title", "category", "type", "amount", "note"])


def totals_to_df(totals):
    return pd.DataFrame(
        [{"Category": c.name, "Total": float(m.amount), "Color": c.color} for c, m in totals.items()],
        columns=["Category", "Total", "Color"],
    )


latest = max((t.date for t in store), default=datetime.now())
reference_date = st.sidebar.date_input("Reference date", value=latest.date())

menu = st.sidebar.radio("Menu", ["🏠 Overview", "🧾 Transactions", "🎯 Budgets", "📊 Statistics"])

if menu == "🏠 Overview":
    report = reports.statistics(Period.THIS_MONTH, reference_date)["result"]
    summary = report["summary"]
    k1, k2, k3, k4 = st.columns(4)
    with k1:
        st.metric("Income", str(summary.total_income))
    with k2:
        st.metric("Expense", str(summary.total_expense))
    with k3:
        st.metric("Net", str(summary.net))
    with k4:
        st.metric("Daily average", str(report["daily_average_expense"]))

    df_cat = totals_to_df(report["expense_by_category"])
    if not df_cat.empty:
        fig_cat = px.pie(df_cat, values="Total", names="Category", hole=0.5,
                         color="Category", color_discrete_map=dict(zip(df_cat["Category"], df_cat["Color"])),
                         title="Spending by category")
        st.plotly_chart(fig_cat, use_container_width=True)

    st.subheader("Recent transactions")
    st.table(tx_to_df(store.recent(8)))

elif menu == "🧾 Transactions":
    st.title("🧾 Transactions")
    col1, col2, col3, col4 = st.columns(4)
    with col1:
        period_label = st.selectbox("Period", list(PERIOD_LABELS), index=4)
    with col2:
        type_label = st.selectbox("Type", ["All", "Expense", "Income"])
    with col3:
        cat_options = {"All categories": None, **{f"{c.name} ({c.type.value})": c.id for c in registry}}
        cat_label = st.selectbox("Category", list(cat_options))
    with col4:
        text = st.text_input("Search")

    tx_type = None if type_label == "All" else TransactionType(type_label.lower())
    rows = reports.transactions(PERIOD_LABELS[period_label], reference_date, tx_type, text, cat_options[cat_label])
    st.dataframe(tx_to_df(rows), use_container_width=True)

    st.subheader("Add transaction")
    with st.form("add_tx"):
        new_type = TransactionType(st.radio("Type", ["expense", "income"], horizontal=True))
        title = st.text_input("Title")
        amount = st.text_input("Amount")
        choices = {c.name: c for c in registry.list_categories(new_type)}
        category_name = st.selectbox("Category", list(choices))
        when = st.date_input("Date", value=reference_date)
        note = st.text_input("Note")
        recurring = st.checkbox("Recurring")
        interval = st.selectbox("Repeats", [i.value for i in RecurringInterval])
        submitted = st.form_submit_button("Save")

    if submitted:
        try:
            tx = Transaction.create(
                title=title,
                amount=amount,
                type=new_type,
                category=choices.get(category_name),
                date=datetime.combine(when, dtime(12, 0)),
                note=note or None,
                is_recurring=recurring,
                recurring_interval=RecurringInterval(interval) if recurring else None,
            )
            store.add(tx)
            st.success(f"Saved {tx.title}")
        except BudgetMillError as e:
            logger.info("rejected transaction: %s", e)
            st.error(str(e))

    for alert in state["alerts"][-3:]:
        st.warning(f"Budget {alert['severity'].value.replace('_', ' ')}: {alert['spent']} / {alert['limit']}")

elif menu == "🎯 Budgets":
    st.title("🎯 Budgets")
    totals = budget_service.totals()
    c1, c2, c3 = st.columns(3)
    c1.metric("Total budget", str(totals.total_cap))
    c2.metric("Spent", str(totals.total_spent))
    c3.metric("Remaining", str(totals.total_remaining))

    text = st.text_input("Search budgets by category")
    visible = {b.id for b in budget_service.search(text)}
    for budget, status in budget_service.statuses():
        if budget.id not in visible:
            continue
        category = registry.get(budget.category_id)
        st.markdown(
            f"**{category.name}** · {budget.period.value} · "
            f"<span style='color:{SEVERITY_COLORS[status.severity]}'>{status.severity.value.replace('_', ' ')}</span>",
            unsafe_allow_html=True,
        )
        st.progress(float(status.progress), text=f"{status.spent} of {budget.cap}, {status.remaining} left")

    st.subheader("New budget")
    with st.form("add_budget"):
        choices = {c.name: c.id for c in registry.list_categories(TransactionType.EXPENSE)}
        category_name = st.selectbox("Category", list(choices))
        cap = st.text_input("Cap")
        period = st.selectbox("Period", [p.value for p in BudgetPeriod], index=1)
        submitted = st.form_submit_button("Create")
    if submitted:
        try:
            budget_service.create(choices[category_name], cap, BudgetPeriod(period), reference_date)
            st.success("Budget created")
        except BudgetMillError as e:
            st.error(str(e))

elif menu == "📊 Statistics":
    st.title("📊 Statistics")
    period_label = st.radio("Period", ["This week", "This month", "This year"], index=1, horizontal=True)
    report = reports.statistics(PERIOD_LABELS[period_label], reference_date)["result"]

    top = top_categories(
        reports.transactions(PERIOD_LABELS[period_label], reference_date, TransactionType.EXPENSE), k=5
    )
    if top:
        fig_bar = px.bar(
            x=[c.name for c, _ in top],
            y=[float(m.amount) for _, m in top],
            labels={"x": "Category", "y": f"Spent ({config.CURRENCY})"},
            title="Top categories",
        )
        st.plotly_chart(fig_bar, use_container_width=True)

    series = report["expense_trend"]
    if series:
        fig_ts = go.Figure()
        fig_ts.add_trace(go.Scatter(
            x=[d for d, _ in series], y=[float(m.amount) for _, m in series],
            mode="lines+markers", name="Expense",
        ))
        fig_ts.update_layout(margin=dict(t=30, b=10, l=10, r=10), title="Spending trend")
        st.plotly_chart(fig_ts, use_container_width=True)
    else:
        st.info("No expenses in this period.")
