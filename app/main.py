"""
Streamlit Frontend for the Finance Tracker

Renders the daily account ledger, the monthly dashboard, the expense and
income lists, the record check and a small form for installment purchases.

DESIGN PRINCIPLES:
1. The page never computes balances itself; it only renders what the
   orchestrator returns
2. The ledger is recomputed only when records or filters change
3. Problems in the data are shown, never hidden
"""

import asyncio
import datetime
from decimal import Decimal
from typing import Optional

import streamlit as st

from finance_tracker.audit import configure_logging
from finance_tracker.config import get_settings
from finance_tracker.ledger import column_labels
from finance_tracker.ledger.dates import format_date_for_display, month_window
from finance_tracker.models.ledger import (
    AccountSortKey,
    LedgerFilters,
    LedgerView,
    SortDirection,
)
from finance_tracker.models.listing import ExpenseFilters, IncomeFilters
from finance_tracker.models.records import Account
from finance_tracker.orchestrator import LedgerFlow, create_app_components
from finance_tracker.services.storage import NotFoundError, StorageError


# Page configuration
st.set_page_config(
    page_title="Finance Tracker",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

SORT_LABELS = {
    AccountSortKey.NAME: "Name",
    AccountSortKey.BALANCE: "Initial balance",
    AccountSortKey.FINAL_BALANCE: "Current balance",
    AccountSortKey.ACTIVITY: "Activity",
    AccountSortKey.CUSTOM: "Custom order",
}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    app_settings = get_settings().app
    configure_logging(app_settings.effective_log_level)
    try:
        return create_app_components(use_storage=True)
    except Exception as e:
        st.error(f"Failed to initialize: {e}")
        return create_app_components(use_storage=False)


def money(value: Decimal) -> str:
    return f"{value:,.2f}"


def main():
    """Main application entry point."""
    ledger_flow, sheets_client = get_components()

    st.sidebar.title("💰 Finance Tracker")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📅 Daily Ledger", "📊 Dashboard", "💸 Expenses", "💵 Income",
         "🧾 Installments", "🔎 Data Check", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    if sheets_client is None:
        st.sidebar.info("Running on in-memory demo data.")
    st.sidebar.caption(f"Environment: {get_settings().app.app_environment}")

    if page == "📅 Daily Ledger":
        render_ledger_page(ledger_flow)
    elif page == "📊 Dashboard":
        render_dashboard_page(ledger_flow)
    elif page == "💸 Expenses":
        render_expenses_page(ledger_flow)
    elif page == "💵 Income":
        render_income_page(ledger_flow)
    elif page == "🧾 Installments":
        render_installments_page(ledger_flow)
    elif page == "🔎 Data Check":
        render_validation_page(ledger_flow)
    elif page == "⚙️ Settings":
        render_settings_page()


def load_accounts(ledger_flow: LedgerFlow) -> Optional[list[Account]]:
    """Accounts for the selectors, or None after showing the storage error."""
    try:
        return run_async(ledger_flow.repository.list_accounts())
    except StorageError as e:
        st.error(f"❌ Could not load your accounts: {e}")
        return None


def render_ledger_filters(accounts: list[Account]) -> LedgerFilters:
    """Collect the filter state from the widgets."""
    settings = get_settings().ledger
    today = datetime.date.today()

    col1, col2, col3 = st.columns(3)
    with col1:
        month = st.selectbox("Month", options=list(range(1, 13)), index=today.month - 1)
    with col2:
        year = st.number_input("Year", min_value=2000, max_value=2100, value=today.year)
    with col3:
        span = st.slider(
            "Days shown",
            min_value=1,
            max_value=settings.max_range_days,
            value=min(settings.default_range_days, settings.max_range_days),
        )

    window = month_window(int(month), int(year), days=span)
    names = column_labels(accounts)

    col1, col2, col3 = st.columns([2, 1, 1])
    with col1:
        visible = st.multiselect(
            "Accounts",
            options=list(names),
            format_func=lambda account_id: names[account_id],
            help="Leave empty to show every account",
        )
    with col2:
        sort_by = st.selectbox(
            "Order accounts by",
            options=list(AccountSortKey),
            index=list(AccountSortKey).index(AccountSortKey(settings.default_sort_by)),
            format_func=lambda key: SORT_LABELS[key],
        )
    with col3:
        direction = st.radio(
            "Direction",
            options=list(SortDirection),
            index=list(SortDirection).index(SortDirection(settings.default_sort_direction)),
            format_func=lambda d: "Ascending" if d == SortDirection.ASC else "Descending",
            horizontal=True,
        )

    custom_order: list[str] = []
    if sort_by == AccountSortKey.CUSTOM:
        custom_order = st.multiselect(
            "Column order",
            options=list(names),
            format_func=lambda account_id: names[account_id],
            help="Pick accounts in the order you want them; the rest follow",
        )

    return LedgerFilters(
        start_date=window.start_date,
        end_date=window.end_date,
        visible_accounts=visible,
        custom_order=custom_order,
        sort_by=sort_by,
        sort_direction=direction,
    )


def ledger_rows(view: LedgerView) -> list[dict]:
    """Flatten the view into table rows, one per day."""
    date_format = get_settings().ledger.display_date_format
    labels = column_labels(view.visible_accounts)
    rows = []
    for summary in view.summaries:
        row = {"Date": format_date_for_display(summary.date, date_format)}
        for account in view.visible_accounts:
            cell = summary.accounts.get(account.id)
            if cell is None:
                continue
            label = labels[account.id]
            row[f"{label} · out"] = money(cell.daily_expenses)
            row[f"{label} · in"] = money(cell.daily_income)
            row[f"{label} · balance"] = money(cell.final_balance)
        row["Total balance"] = money(summary.total_daily_balance)
        rows.append(row)
    return rows


def render_ledger_page(ledger_flow: LedgerFlow):
    """Render the daily account ledger."""
    st.title("📅 Daily Account Ledger")
    st.markdown("Money in, money out and running balance for every account, day by day.")

    accounts = load_accounts(ledger_flow)
    if accounts is None:
        return

    filters = render_ledger_filters(accounts)
    view = run_async(ledger_flow.daily_ledger(filters))

    st.markdown("---")

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Accounts", len(view.visible_accounts))
    col2.metric("Total balance", money(view.current_total_balance))
    col3.metric("Income in period", money(view.period_income))
    col4.metric("Expenses in period", money(view.period_expenses))

    if view.is_empty:
        st.info(
            "📋 Nothing to show for this period. "
            "Check the date range, or open 'Data Check' if you expected data here."
        )
        return

    st.dataframe(ledger_rows(view), use_container_width=True, hide_index=True)


def render_dashboard_page(ledger_flow: LedgerFlow):
    """Render the monthly dashboard."""
    st.title("📊 Dashboard")

    try:
        summary = run_async(ledger_flow.dashboard())
    except StorageError as e:
        st.error(f"❌ Could not load your records: {e}")
        return

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Income this month", money(summary.total_income_this_month))
    col2.metric("Expenses this month", money(summary.total_expenses_this_month))
    col3.metric("Balance this month", money(summary.balance_this_month))
    col4.metric("Unpaid expenses", money(summary.total_unpaid_expenses))

    if summary.is_overspent:
        st.warning("⚠️ You spent more than you earned this month.")

    st.markdown("### Expenses by category")
    if summary.expenses_by_category:
        st.dataframe(
            [
                {
                    "Category": share.category,
                    "Amount": money(share.amount),
                    "Share": f"{share.percentage:.1f}%",
                }
                for share in summary.expenses_by_category
            ],
            use_container_width=True,
            hide_index=True,
        )
    else:
        st.info("No expenses this month.")

    st.markdown("### Last six months")
    st.bar_chart(
        {
            "Income": {m.month: float(m.total_income) for m in summary.monthly_trend},
            "Expenses": {m.month: float(m.total_expenses) for m in summary.monthly_trend},
        }
    )


def account_filter(accounts: list[Account], key: str) -> Optional[str]:
    """Account selector with an 'All' entry; returns the chosen id."""
    names = column_labels(accounts)
    choice = st.selectbox(
        "Account",
        options=[""] + list(names),
        format_func=lambda account_id: names.get(account_id, "All"),
        key=key,
    )
    return choice or None


def date_filter(key: str) -> tuple[Optional[datetime.date], Optional[datetime.date]]:
    picked = st.date_input("Period", value=(), key=key)
    if len(picked) == 2:
        return picked[0], picked[1]
    if len(picked) == 1:
        return picked[0], picked[0]
    return None, None


def render_expenses_page(ledger_flow: LedgerFlow):
    """Render the expense list, installments grouped by purchase."""
    st.title("💸 Expenses")

    accounts = load_accounts(ledger_flow)
    if accounts is None:
        return

    col1, col2, col3 = st.columns(3)
    with col1:
        category = st.text_input("Category", key="expense_category")
        account = account_filter(accounts, key="expense_account")
    with col2:
        description = st.text_input("Description contains", key="expense_description")
        location = st.text_input("Location contains", key="expense_location")
    with col3:
        start_date, end_date = date_filter(key="expense_period")

    filters = ExpenseFilters(
        category=category or None,
        account=account,
        description=description or None,
        location=location or None,
        start_date=start_date,
        end_date=end_date,
    )

    try:
        listing = run_async(ledger_flow.expense_list(filters))
    except StorageError as e:
        st.error(f"❌ Could not load your expenses: {e}")
        return

    st.metric("Total", money(listing.total_amount))
    if not listing.groups:
        st.info("📋 No expenses match these filters.")
        return

    date_format = get_settings().ledger.display_date_format
    for group in listing.groups:
        first = group.expenses[0]
        title = first.description or first.category or group.key
        when = first.effective_date
        shown = format_date_for_display(when, date_format) if when else "no date"
        if group.is_installment_group:
            next_due = group.next_due
            header = (
                f"🧾 {title} · {money(group.total_amount)} · "
                f"{group.paid_count}/{len(group.expenses)} paid"
            )
            if next_due is not None:
                header += f" · next {format_date_for_display(next_due.effective_date, date_format)}"
        else:
            header = f"{shown} · {title} · {money(group.total_amount)}"

        with st.expander(header):
            st.dataframe(
                [
                    {
                        "Date": format_date_for_display(e.effective_date, date_format)
                        if e.effective_date else "no date",
                        "Category": e.category,
                        "Description": e.description,
                        "Amount": money(e.amount),
                        "Installment": f"{e.installment_number}/{e.total_installments}"
                        if e.is_installment else "",
                        "Paid": "✅" if e.is_paid else "",
                    }
                    for e in group.expenses
                ],
                hide_index=True,
            )
            if group.is_installment_group:
                label, delete = "🗑️ Delete all installments", ledger_flow.delete_installment_group
            else:
                label, delete = "🗑️ Delete", ledger_flow.delete_expense
            if not st.button(label, key=f"delete_{group.key}"):
                continue
            try:
                run_async(delete(group.key))
            except NotFoundError:
                st.warning("It was already deleted.")
            except StorageError as e:
                st.error(f"❌ Could not delete: {e}")
            else:
                st.rerun()


def render_income_page(ledger_flow: LedgerFlow):
    """Render the income list."""
    st.title("💵 Income")

    accounts = load_accounts(ledger_flow)
    if accounts is None:
        return

    col1, col2, col3 = st.columns(3)
    with col1:
        source = st.text_input("Source", key="income_source")
        account = account_filter(accounts, key="income_account")
    with col2:
        notes = st.text_input("Notes contain", key="income_notes")
        location = st.text_input("Location contains", key="income_location")
    with col3:
        start_date, end_date = date_filter(key="income_period")

    filters = IncomeFilters(
        source=source or None,
        account=account,
        description=notes or None,
        location=location or None,
        start_date=start_date,
        end_date=end_date,
    )

    try:
        listing = run_async(ledger_flow.income_list(filters))
    except StorageError as e:
        st.error(f"❌ Could not load your income: {e}")
        return

    st.metric("Total", money(listing.total_amount))
    if not listing.income:
        st.info("📋 No income matches these filters.")
        return

    date_format = get_settings().ledger.display_date_format
    for income in listing.income:
        col1, col2 = st.columns([5, 1])
        shown = format_date_for_display(income.date, date_format) if income.date else "no date"
        col1.write(f"{shown} · {income.source or 'Income'} · {money(income.amount)}")
        if col2.button("🗑️", key=f"del_income_{income.id}"):
            try:
                run_async(ledger_flow.delete_income(income.id))
            except NotFoundError:
                st.warning("It was already deleted.")
            except StorageError as e:
                st.error(f"❌ Could not delete: {e}")
            else:
                st.rerun()


def render_installments_page(ledger_flow: LedgerFlow):
    """Render the installment purchase form."""
    st.title("🧾 Installment Purchase")
    st.markdown("Split a purchase into monthly installments. Each one is stored as its own expense.")

    accounts = load_accounts(ledger_flow)
    if accounts is None:
        return
    if not accounts:
        st.info("Add an account first.")
        return

    with st.form("installments"):
        base_date = st.date_input("First due date", value=datetime.date.today())
        total_amount = st.text_input("Total amount", value="")
        total_installments = st.number_input("Installments", min_value=1, max_value=48, value=3)
        category = st.text_input("Category")
        description = st.text_input("Description")
        names = column_labels(accounts)
        account = st.selectbox(
            "Account",
            options=accounts,
            format_func=lambda a: names[a.id],
        )
        is_credit_card = st.checkbox("Credit card")
        submitted = st.form_submit_button("💾 Save installments")

    if not submitted:
        return

    try:
        plan = run_async(
            ledger_flow.add_installment_expense(
                base_date=base_date,
                total_amount=total_amount,
                total_installments=int(total_installments),
                category=category,
                account_id=account.id,
                description=description,
                is_credit_card=is_credit_card,
            )
        )
    except ValueError as e:
        st.error(f"❌ {e}")
        return
    except StorageError as e:
        st.error(f"❌ Could not save: {e}")
        return

    st.success(f"✅ Saved {len(plan)} installments.")
    st.dataframe(
        [
            {
                "#": f"{e.installment_number}/{e.total_installments}",
                "Due": format_date_for_display(e.due_date),
                "Amount": money(e.amount),
            }
            for e in plan
        ],
        hide_index=True,
    )


def render_validation_page(ledger_flow: LedgerFlow):
    """Render the record check."""
    st.title("🔎 Data Check")
    st.markdown("Records the ledger had to adjust or could not place.")

    try:
        result = run_async(ledger_flow.record_validation())
    except StorageError as e:
        st.error(f"❌ Could not load your records: {e}")
        return

    summary = ledger_flow.get_validation_summary(result)
    if result.has_errors:
        st.error(summary)
    elif result.warnings:
        st.warning(summary)
    else:
        st.success(summary)

    if result.issues:
        st.dataframe(
            [
                {
                    "Severity": issue.severity,
                    "Record": f"{issue.record_type.value} {issue.record_id or ''}",
                    "Field": issue.field,
                    "Problem": issue.message,
                    "Fix": issue.suggested_fix or "",
                }
                for issue in result.issues
            ],
            use_container_width=True,
            hide_index=True,
        )


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    from finance_tracker.config import validate_all_settings

    status = validate_all_settings()

    sections = [
        ("Ledger", "ledger"),
        ("Google Sheets (Storage)", "google_sheets"),
        ("Application", "app"),
    ]

    for name, key in sections:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    app_settings = get_settings().app
    st.caption(
        f"Environment: {app_settings.app_environment} · "
        f"log level: {app_settings.effective_log_level}"
        + (" · debug mode" if app_settings.debug_mode else "")
    )

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with your settings "
        "(`GOOGLE_SHEETS_CREDENTIALS_PATH`, `GOOGLE_SHEETS_SPREADSHEET_ID`, "
        "`LEDGER_MAX_RANGE_DAYS`, ...)."
    )


if __name__ == "__main__":
    main()
