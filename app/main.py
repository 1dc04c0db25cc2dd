import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import asyncio
from datetime import datetime, time as dt_time

import numpy as np
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

from budget.async_reports import SnapshotTracker, refresh_summaries
from budget.config import get_config
from budget.domain import CATEGORIES_BY_KIND, Period, Transaction, TransactionKind
from budget.errors import StoreError, TransactionValidationError
from budget.events import event_bus, PERIOD_ROLLOVER
from budget.health import (
    FinancialProfile,
    build_advice_prompt,
    expense_suggestions,
    financial_health_score,
    predict_health,
    request_advice,
    suggestions_text,
)
from budget.highlights import (
    average_expense_per_person,
    high_expense_advice,
    recommended_savings,
    top_expense_categories,
)
from budget.logs import configure_from, get_logger
from budget.ordering import sort_summaries
from budget.savings import (
    EXCEEDS,
    ON_TRACK,
    linear_trend,
    monthly_net_savings,
    plan_for_target,
    plan_status,
    project_savings,
    target_year,
)
from budget.services import SummaryService
from budget.store import InMemoryTransactionStore
from budget.transforms import load_seed, transaction_to_record

config = get_config()
configure_from(config)
logger = get_logger("budget.app")
CUR = config.currency_symbol

st.set_page_config(page_title="Budget Tracker", layout="wide")

kinds = tuple(TransactionKind(k) for k in config.enabled_kinds)
service = SummaryService.from_config(config)

if "store" not in st.session_state:
    seed_tx, seed_households = ({}, {})
    if os.path.exists(config.seed_path):
        seed_tx, seed_households = load_seed(config.seed_path)
    st.session_state.store = InMemoryTransactionStore(kinds, seed_tx, seed_households)
    st.session_state.tracker = SnapshotTracker()
    st.session_state.last_reset = {}

store = st.session_state.store
user_id = st.sidebar.text_input("User", value=st.session_state.get("user_id", config.default_user))
st.session_state["user_id"] = user_id
now = datetime.now()

try:
    snapshot = asyncio.run(store.list_all(user_id))
    household = asyncio.run(store.get_household(user_id))
except StoreError as e:
    st.error(f"Could not load data: {e}")
    st.stop()

report = service.dashboard_report(snapshot, now)
summaries = report["summaries"]
issues = report["issues"]

for period in Period:
    last = st.session_state.last_reset.get(period.value)
    for result in event_bus.publish(PERIOD_ROLLOVER, {"period": period, "last_reset": last, "now": now}):
        if result["rolled_over"]:
            logger.info("New %s period %s", result["period"], result["period_key"])
            st.session_state.last_reset[period.value] = now


def summaries_to_df(items):
    return pd.DataFrame([
        {
            "Period": s.period_key,
            "Income": s.total_income,
            "Expenses": s.total_expenses,
            "Savings": s.total_savings,
            "Balance": s.balance,
        }
        for s in items
    ])


def breakdown_df(mapping):
    return pd.DataFrame(
        [{"Category": k, "Amount": v} for k, v in mapping.items()]
    ).sort_values("Amount", ascending=False) if mapping else pd.DataFrame(columns=["Category", "Amount"])


menu = st.sidebar.radio(
    "Menu",
    ["🏠 Overview", "🧾 Transactions", "📅 Summaries", "⚠️ Highlights", "🎯 Savings Target", "🏡 Household & Health"]
)

if menu == "🏠 Overview":
    totals = report["totals"]
    balance = totals["income"] - totals["expense"] - totals["savings"]
    k1, k2, k3, k4 = st.columns(4)
    k1.metric("Total Income", f"{CUR}{totals['income']:,.2f}")
    k2.metric("Total Expenses", f"{CUR}{totals['expense']:,.2f}")
    k3.metric("Savings", f"{CUR}{totals['savings']:,.2f}")
    k4.metric("Current Balance", f"{CUR}{balance:,.2f}")

    monthly = report["result"][Period.MONTH.value]["ordered"]
    if monthly:
        df_m = summaries_to_df(monthly)
        fig = go.Figure()
        fig.add_trace(go.Scatter(x=df_m["Period"], y=df_m["Income"], mode="lines+markers", name="Income"))
        fig.add_trace(go.Scatter(x=df_m["Period"], y=df_m["Expenses"], mode="lines+markers", name="Expenses"))
        fig.update_layout(template="plotly_dark", margin=dict(t=30, b=10, l=10, r=10))
        st.plotly_chart(fig, use_container_width=True)
    else:
        st.info("No transactions to display.")

    top = list(top_expense_categories(snapshot, 5))
    if top:
        df_top = pd.DataFrame([{"Category": n, "Amount": v} for n, v in top])
        st.subheader("📊 Top Expense Categories")
        st.plotly_chart(
            px.bar(df_top, x="Category", y="Amount", template="plotly_dark"),
            use_container_width=True,
        )

    if issues:
        st.warning(f"{len(issues)} transaction(s) skipped because of data problems.")
        st.table(pd.DataFrame(list(issues))[["transaction_id", "error", "message"]])

elif menu == "🧾 Transactions":
    st.title("🧾 Transactions")

    st.subheader("➕ Add Transaction")
    kind_value = st.selectbox("Type", [k.value for k in kinds])
    with st.form("add_form", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            day = st.date_input("Date", value=now.date())
            amount = st.number_input("Amount", min_value=0.0, step=10.0, format="%.2f")
        with col2:
            category = st.selectbox("Category", CATEGORIES_BY_KIND[TransactionKind(kind_value)])
            note = st.text_input("Note (optional)")
        submitted = st.form_submit_button("Add")

    if submitted:
        draft = Transaction(
            id="",
            amount=float(amount),
            kind=TransactionKind(kind_value),
            category=category,
            ts=datetime.combine(day, dt_time(12, 0)).isoformat(),
            note=note or "",
        )
        try:
            asyncio.run(store.create(user_id, draft))
            st.success("✅ Transaction added!")
            st.rerun()
        except TransactionValidationError as e:
            st.error(f"Invalid input: {e}")

    st.divider()
    st.subheader("📋 Entered Transactions")
    if snapshot:
        df = pd.DataFrame([transaction_to_record(t) for t in snapshot])
        df["ts"] = pd.to_datetime(df["ts"], errors="coerce", format="ISO8601")
        df = df.sort_values("ts", ascending=False)
        disp = df.assign(
            ts=df["ts"].dt.strftime("%Y-%m-%d").fillna("N/A"),
            amount=df["amount"].map(lambda v: f"{CUR}{v:,.2f}" if pd.notna(v) else "N/A"),
        )
        st.dataframe(disp, use_container_width=True)
        st.download_button("⬇ Download CSV", df.to_csv(index=False), file_name="transactions.csv")

        st.subheader("✏️ Edit or Delete")
        ids = [t.id for t in snapshot]
        selected = st.selectbox("Transaction", ids)
        current = next(t for t in snapshot if t.id == selected)
        cats = CATEGORIES_BY_KIND.get(current.kind, (current.category,))
        col_a, col_b, col_c = st.columns([2, 2, 1])
        with col_a:
            new_amount = st.number_input("New amount", value=float(current.amount), min_value=0.0, step=10.0)
        with col_b:
            new_category = st.selectbox(
                "New category", cats,
                index=cats.index(current.category) if current.category in cats else 0,
            )
        with col_c:
            if st.button("Save"):
                try:
                    asyncio.run(store.update(user_id, selected, amount=new_amount, category=new_category))
                    st.rerun()
                except (TransactionValidationError, StoreError) as e:
                    st.error(str(e))
            if st.button("Delete"):
                try:
                    asyncio.run(store.delete(user_id, selected))
                    st.rerun()
                except StoreError as e:
                    st.error(str(e))
    else:
        st.info("No transactions yet.")

elif menu == "📅 Summaries":
    st.title("📅 Summaries")
    if st.button("🔄 Refresh from store"):
        fresh = asyncio.run(refresh_summaries(store, user_id, st.session_state.tracker, kinds))
        if fresh is not None:
            summaries = fresh

    tabs = st.tabs(["Weekly", "Monthly", "Yearly"])
    for tab, period in zip(tabs, Period):
        with tab:
            ordered = sort_summaries(summaries.for_period(period), period)
            if not ordered:
                st.info("No data for this period.")
                continue
            df_p = summaries_to_df(ordered)
            st.dataframe(
                df_p.style.format({c: f"{CUR}{{:,.2f}}" for c in ["Income", "Expenses", "Savings", "Balance"]}),
                use_container_width=True,
            )
            fig = px.bar(
                df_p, x="Period", y=["Income", "Expenses", "Savings"], barmode="group",
                template="plotly_dark", title=f"{period.value.title()} totals",
            )
            st.plotly_chart(fig, use_container_width=True)

            choice = st.selectbox("Breakdown for", [s.period_key for s in ordered], key=f"bd_{period.value}")
            chosen = next(s for s in ordered if s.period_key == choice)
            c1, c2 = st.columns(2)
            with c1:
                st.write("**Income Breakdown**")
                st.table(breakdown_df(chosen.income_by_category))
            with c2:
                st.write("**Expense Breakdown**")
                df_e = breakdown_df(chosen.expenses_by_category)
                st.table(df_e)
                if not df_e.empty:
                    st.plotly_chart(px.pie(df_e, values="Amount", names="Category"), use_container_width=True)
            st.caption(high_expense_advice(chosen, CUR))

elif menu == "⚠️ Highlights":
    st.title("⚠️ Expense Highlights")
    for period in (Period.WEEK, Period.MONTH):
        st.header(f"{period.value.title()}ly")
        rows = report["result"][period.value]["highlights"]
        if not rows:
            st.info("No data yet.")
        for row in rows:
            pct = row["expense_percent"]
            pct_text = "no income recorded" if pct is None else f"{pct}% of Income"
            box = st.error if row["status"] == "Overspending Alert" else (
                st.warning if row["status"] == "High Spending" else st.success
            )
            box(
                f"**{row['period_key']}**: {row['status']}. "
                f"Expenses {CUR}{row['total_expenses']:,.2f} ({pct_text}), "
                f"income {CUR}{row['total_income']:,.2f}"
            )
            for w in row["warnings"]:
                st.write(f"🟠 {w.message}")
    st.caption(
        "Review your spending habits during these periods to identify areas for improvement "
        "and adjust your budget to meet your financial goals."
    )

elif menu == "🎯 Savings Target":
    st.title("🎯 Savings Target")

    year = target_year(now)
    target = asyncio.run(store.get_savings_target(user_id, year))

    with st.form("target_form"):
        amount = st.number_input(
            f"Savings target for {year}", min_value=0.0, step=100.0, format="%.2f",
            value=target.target_amount if target else 0.0,
        )
        if st.form_submit_button("Save Target"):
            try:
                asyncio.run(store.set_savings_target(user_id, year, float(amount), now))
                st.success(f"Your target of {CUR}{amount:,.2f} has been saved for {year}.")
                st.rerun()
            except TransactionValidationError as e:
                st.error(f"Invalid target: {e}")

    history = monthly_net_savings(summaries.monthly, year)
    if history:
        st.plotly_chart(
            px.line(
                pd.DataFrame({"Month": range(1, len(history) + 1), "Net Savings": history,
                              "Cumulative": np.cumsum(history)}),
                x="Month", y=["Net Savings", "Cumulative"], markers=True, title=f"{year} savings by month",
            ),
            use_container_width=True,
        )

    if target is None:
        st.info("Set a target to see how far you are from it.")
        st.stop()

    plan = plan_for_target(target, summaries, now)
    c1, c2, c3 = st.columns(3)
    c1.metric("Saved So Far", f"{CUR}{plan.current_savings:,.2f}")
    c2.metric("Remaining", f"{CUR}{plan.remaining:,.2f}")
    c3.metric(f"Per Month ({plan.months_left} left)", f"{CUR}{plan.monthly_suggestion:,.2f}")

    status = plan_status(plan, project_savings(linear_trend, history, plan.current_savings))
    if status is None:
        st.info("Not enough history yet to project your savings.")
    elif plan.already_met or status in (EXCEEDS, ON_TRACK):
        st.success(status)
    else:
        st.warning(status)

elif menu == "🏡 Household & Health":
    st.title("🏡 Household & Financial Health")

    with st.form("household_form"):
        adults = st.number_input("Adults", min_value=0, step=1, value=household.num_adults if household else 1)
        children = st.number_input("Children", min_value=0, step=1, value=household.num_children if household else 0)
        if st.form_submit_button("Save Household"):
            asyncio.run(store.set_household(user_id, int(adults), int(children), now))
            st.success("Household information saved.")
            st.rerun()

    current_month = report["result"][Period.MONTH.value]["current"]
    months = report["result"][Period.MONTH.value]["ordered"]
    basis = current_month or (months[-1] if months else None)
    if basis is None:
        st.info("Add some transactions to see your financial health.")
        st.stop()

    st.caption(f"Based on {basis.period_key}")
    c1, c2 = st.columns(2)
    c1.metric("Average Expense per Person", f"{CUR}{average_expense_per_person(basis.total_expenses, household):,.2f}")
    c2.metric("Recommended Monthly Savings", f"{CUR}{recommended_savings(basis.balance):,.2f}")

    profile = FinancialProfile.from_summary(basis)
    score = financial_health_score(profile, household)
    st.subheader(f"Financial Health: {score}")
    st.write(f"Expense Analysis: {suggestions_text(expense_suggestions(profile, config.monthly_thresholds))}")

    features = np.array([
        profile.housing, profile.food, profile.transportation, profile.healthcare,
        profile.other_necessities, profile.childcare, profile.taxes,
    ])
    if features.sum() > 0:
        st.plotly_chart(
            px.pie(values=features, names=["Housing", "Food", "Transportation", "Healthcare",
                                           "Other", "Childcare", "Taxes"], title="Cost distribution"),
            use_container_width=True,
        )

    prediction = predict_health(None, profile, household)
    st.write("Prediction model: " + ("not configured" if prediction is None else f"{prediction:.3f}"))

    prompt = build_advice_prompt(profile, household, score, CUR)
    with st.expander("View Detailed Advice"):
        st.write(request_advice(None, prompt))
        st.code(prompt, language=None)
