"""
Streamlit Frontend for Egg Farm Ledger

This is the user interface the farm owner uses every day.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Explicit confirmation before anything is deleted or replaced
3. Clear error messages in simple language
4. No business logic: every action goes through FarmBook

Run with:  streamlit run app/main.py
"""

from datetime import date

import streamlit as st

from eggfarm.config import get_settings, validate_all_settings
from eggfarm.formatting import format_currency, reminder_message, whatsapp_link
from eggfarm.models import (
    DEFAULT_PAYEE_TYPES,
    EXPENSE_CATEGORIES,
    ExpenseType,
    LedgerEntryType,
    Theme,
)
from eggfarm.orchestrator import FarmBook, create_app_components
from eggfarm.services.storage import StorageError
from eggfarm.transfer import EXPORT_FILENAMES, CsvKind, ImportFailedError


# Page configuration
st.set_page_config(
    page_title="Egg Farm Ledger",
    page_icon="🥚",
    layout="wide",
    initial_sidebar_state="expanded",
)


@st.cache_resource
def get_book() -> FarmBook:
    """Get or create application components (cached across sessions)."""
    return create_app_components()


def money(amount) -> str:
    return format_currency(amount, get_settings().app)


def main():
    """Main application entry point."""
    book = get_book()
    farm = book.settings()

    st.sidebar.title(f"🥚 {farm.farm_name}")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        [
            "📊 Dashboard",
            "🥚 Eggs",
            "👥 Customers",
            "📒 Ledger",
            "💸 Expenses",
            "📑 Balance Sheet",
            "⏳ Outstanding",
            "⚙️ Settings & Backup",
        ],
        index=0,
    )

    st.sidebar.markdown("---")
    st.sidebar.metric("Eggs in stock", book.current_inventory())

    try:
        if page == "📊 Dashboard":
            render_dashboard(book)
        elif page == "🥚 Eggs":
            render_eggs_page(book)
        elif page == "👥 Customers":
            render_customers_page(book)
        elif page == "📒 Ledger":
            render_ledger_page(book)
        elif page == "💸 Expenses":
            render_expenses_page(book)
        elif page == "📑 Balance Sheet":
            render_balance_sheet_page(book)
        elif page == "⏳ Outstanding":
            render_outstanding_page(book)
        elif page == "⚙️ Settings & Backup":
            render_settings_page(book)
    except StorageError as e:
        st.error(f"Could not save your change: {e}")


def render_dashboard(book: FarmBook):
    """Render the per-day activity view and the production trend."""
    st.title("📊 Overview")

    day = st.date_input("Date", value=date.today())
    activity = book.daily_activity(day)

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Opening stock", activity.inventory.opening)
    col2.metric("Closing stock", activity.inventory.closing)
    col3.metric("Money in", money(activity.total_in))
    col4.metric("Money out", money(activity.total_out))

    if activity.records:
        st.dataframe(
            [
                {
                    "Category": record.category,
                    "Party": record.party,
                    "Description": record.description,
                    "Amount": ("-" if record.flow.value == "OUT" else "+") + money(record.amount),
                }
                for record in activity.records
            ],
            use_container_width=True,
        )
    else:
        st.info("Nothing was recorded on this day.")

    st.markdown("### Trend")
    trend = book.production_trend(limit=get_settings().app.trend_days)
    if trend:
        st.line_chart(
            {
                "date": [point.date.isoformat() for point in trend],
                "Collected": [point.collected for point in trend],
                "Sales": [float(point.sales) for point in trend],
                "Expense": [float(point.expense) for point in trend],
            },
            x="date",
        )


def render_eggs_page(book: FarmBook):
    """Render egg collection and cash sales."""
    st.title("🥚 Egg Production")

    col1, col2 = st.columns(2)
    with col1:
        with st.form("collection", clear_on_submit=True):
            st.markdown("**Record collection**")
            day = st.date_input("Date", value=date.today(), key="collection_date")
            collected = st.number_input("Eggs collected", min_value=0, step=1)
            if st.form_submit_button("Save collection"):
                try:
                    book.record_collection(day, int(collected))
                    st.success("Collection saved.")
                except ValueError as e:
                    st.warning(str(e))
    with col2:
        with st.form("cash_sale", clear_on_submit=True):
            st.markdown("**Record cash sale**")
            day = st.date_input("Date", value=date.today(), key="sale_date")
            sold = st.number_input("Eggs sold", min_value=0, step=1)
            price = st.number_input("Price per egg", min_value=0.0, step=1.0)
            if st.form_submit_button("Save sale"):
                try:
                    book.record_cash_sale(day, int(sold), str(price))
                    st.success("Sale saved.")
                except ValueError as e:
                    st.warning(str(e))

    st.markdown("---")
    logs = sorted(book.snapshot().egg_logs, key=lambda log: log.date, reverse=True)
    for log in logs:
        cols = st.columns([2, 1, 1, 2, 2, 1])
        cols[0].write(log.date.isoformat())
        cols[1].write(log.collected_count)
        cols[2].write(log.sold_count)
        cols[3].write(money(log.total_sale))
        cols[4].write("Synced from Ledger" if log.is_linked else "Manual Entry")
        if cols[5].button("Delete", key=f"del-egg-{log.id}"):
            book.remove_egg_log(log.id)
            st.rerun()


def render_customers_page(book: FarmBook):
    """Render the customer list."""
    st.title("👥 Customers")

    with st.form("customer", clear_on_submit=True):
        name = st.text_input("Name")
        phone = st.text_input("Phone")
        if st.form_submit_button("Add customer") and name.strip():
            book.add_customer(name, phone)
            st.success(f"Added {name}.")

    for customer in book.snapshot().customers:
        cols = st.columns([3, 3, 1])
        cols[0].write(customer.name)
        cols[1].write(customer.phone or "-")
        if cols[2].button("Delete", key=f"del-customer-{customer.id}"):
            book.remove_customer(customer.id)
            st.rerun()


def render_ledger_page(book: FarmBook):
    """Render one customer's ledger with running balance."""
    st.title("📒 Customer Ledger")

    customers = book.snapshot().customers
    if not customers:
        st.info("Add a customer first.")
        return

    customer = st.selectbox("Customer", customers, format_func=lambda c: c.name)

    with st.form("ledger", clear_on_submit=True):
        col1, col2 = st.columns(2)
        day = col1.date_input("Date", value=date.today())
        entry_type = col2.radio("Type", list(LedgerEntryType), format_func=lambda t: t.value,
                                horizontal=True)
        quantity = col1.number_input("Quantity (eggs)", min_value=0, step=1)
        price = col2.number_input("Price per egg", min_value=0.0, step=1.0)
        amount = st.number_input("Amount (leave 0 to use quantity x price)", min_value=0.0, step=1.0)
        description = st.text_input("Description")
        if st.form_submit_button("Add entry"):
            try:
                book.add_ledger_entry(
                    customer.id,
                    day,
                    entry_type,
                    amount=str(amount) if amount else None,
                    quantity=int(quantity) or None,
                    price_per_unit=str(price) if price else None,
                    description=description,
                )
                st.success("Entry saved.")
            except ValueError as e:
                st.warning(str(e))

    statement = book.customer_statement(customer.id)
    st.metric("Balance", money(statement.balance),
              help="Positive: the customer owes you. Negative: advance.")

    for line in reversed(statement.lines):
        entry = line.entry
        cols = st.columns([2, 1, 3, 2, 2, 1])
        cols[0].write(entry.date.isoformat())
        cols[1].write(entry.type.value)
        cols[2].write(entry.description or ("Sale" if entry.type == LedgerEntryType.DEBIT else "Payment"))
        cols[3].write(money(entry.amount))
        cols[4].write(money(line.balance))
        if cols[5].button("Delete", key=f"del-ledger-{entry.id}"):
            book.remove_ledger_entry(entry.id)
            st.rerun()


def render_expenses_page(book: FarmBook):
    """Render expenses and payees."""
    st.title("💸 Expenses & Payees")
    data = book.snapshot()

    col1, col2 = st.columns(2)
    with col1:
        with st.form("expense", clear_on_submit=True):
            st.markdown("**Record expense or payment**")
            day = st.date_input("Date", value=date.today())
            expense_type = st.radio("Type", list(ExpenseType), format_func=lambda t: t.value,
                                    horizontal=True)
            payee = st.selectbox("Payee", [None] + data.payees,
                                 format_func=lambda p: "General / Cash" if p is None else p.name)
            category = st.selectbox("Category", EXPENSE_CATEGORIES)
            amount = st.number_input("Amount", min_value=0.0, step=1.0)
            description = st.text_input("Description")
            if st.form_submit_button("Save"):
                book.add_expense(
                    day,
                    str(amount),
                    type=expense_type,
                    category=None if expense_type == ExpenseType.PAYMENT else category,
                    description=description,
                    payee_id=payee.id if payee else None,
                )
                st.success("Saved.")
    with col2:
        with st.form("payee", clear_on_submit=True):
            st.markdown("**Add payee**")
            name = st.text_input("Name")
            payee_type = st.selectbox("Type", DEFAULT_PAYEE_TYPES)
            phone = st.text_input("Phone")
            if st.form_submit_button("Add payee") and name.strip():
                book.add_payee(name, payee_type, phone)
                st.success(f"Added {name}.")

    st.markdown("---")
    payee_names = {p.id: p.name for p in data.payees}
    for expense in sorted(data.expenses, key=lambda e: e.date, reverse=True):
        cols = st.columns([2, 2, 2, 3, 2, 1])
        cols[0].write(expense.date.isoformat())
        cols[1].write(expense.category)
        cols[2].write(payee_names.get(expense.payee_id, "General"))
        cols[3].write(expense.description)
        cols[4].write(money(expense.amount))
        if cols[5].button("Delete", key=f"del-expense-{expense.id}"):
            book.remove_expense(expense.id)
            st.rerun()


def render_balance_sheet_page(book: FarmBook):
    """Render the per-day balance sheet."""
    st.title("📑 Balance Sheet")
    sheet = book.balance_sheet()

    col1, col2, col3 = st.columns(3)
    col1.metric("Total sales", money(sheet.total_sales))
    col2.metric("Total expenses", money(sheet.total_expenses))
    col3.metric("Net", money(sheet.net_balance))

    st.dataframe(
        [
            {
                "Date": day.date.isoformat(),
                "General sales": money(day.general_sales),
                "Ledger sales": money(day.ledger_sales),
                "Total sale": money(day.total_sale),
                "Expense": money(day.expense),
                "Balance": money(day.balance),
            }
            for day in sheet.days
        ],
        use_container_width=True,
    )


def render_outstanding_page(book: FarmBook):
    """Render receivables and payables with WhatsApp reminders."""
    st.title("⏳ Outstanding Balances")
    report = book.outstanding()
    farm_name = book.settings().farm_name

    col1, col2 = st.columns(2)
    col1.metric("Total receivables", money(report.total_receivables))
    col2.metric("Total payables", money(report.total_payables))

    for row in report.balances:
        cols = st.columns([3, 2, 2, 2, 2])
        cols[0].write(f"**{row.name}** ({row.kind.title()})")
        cols[1].write(row.status)
        cols[2].write(money(row.amount))
        cols[3].write(row.last_active_label)
        link = whatsapp_link(row.phone, reminder_message(row, farm_name, get_settings().app))
        if link:
            cols[4].link_button("WhatsApp", link)


def render_settings_page(book: FarmBook):
    """Render farm settings, backup and CSV transfer."""
    st.title("⚙️ Settings & Backup")
    farm = book.settings()

    with st.form("settings"):
        farm_name = st.text_input("Farm name", value=farm.farm_name)
        phone = st.text_input("Phone", value=farm.phone)
        location = st.text_input("Location", value=farm.location)
        theme = st.selectbox("Theme", list(Theme), index=list(Theme).index(farm.theme),
                             format_func=lambda t: t.value.title())
        if st.form_submit_button("Save settings"):
            book.update_settings(farm_name=farm_name, phone=phone, location=location, theme=theme)
            st.success("Settings saved.")

    st.markdown("### Full backup")
    st.download_button(
        "Download backup (JSON)",
        data=book.export_backup(),
        file_name=f"eggfarm_full_backup_{date.today().isoformat()}.json",
        mime="application/json",
    )
    backup_file = st.file_uploader("Restore from backup", type=["json"])
    if backup_file is not None:
        st.warning("This will OVERWRITE ALL DATA with the JSON backup. This cannot be undone.")
        if st.button("Confirm restore"):
            try:
                book.restore_backup(backup_file.getvalue())
                st.success("Database restored successfully!")
            except ImportFailedError as e:
                st.error(e.message)

    st.markdown("### CSV")
    for kind in CsvKind:
        cols = st.columns([2, 3])
        cols[0].download_button(
            f"Export {kind.value.title()}",
            data=book.export_csv(kind),
            file_name=EXPORT_FILENAMES[kind],
            mime="text/csv",
            key=f"export-{kind.value}",
        )
        upload = cols[1].file_uploader(f"Import {kind.value.title()} (replaces data)",
                                       type=["csv"], key=f"import-{kind.value}")
        if upload is not None and cols[1].button("Confirm import", key=f"confirm-{kind.value}"):
            try:
                count = book.import_csv(kind, upload.getvalue())
                st.success(f"Import successful! {count} records. Data has been replaced.")
            except ImportFailedError as e:
                st.error(e.message)

    st.markdown("### Connection Status")
    status = validate_all_settings()
    for key, ok in status.items():
        if key.endswith("_error"):
            continue
        if ok:
            st.success(f"✅ {key}")
        else:
            st.error(f"❌ {key} - {status.get(key + '_error', 'Not configured')}")


if __name__ == "__main__":
    main()
