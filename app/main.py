"""
Streamlit Frontend for Coinshire

This is the screen the two people sharing expenses look at every day.

DESIGN PRINCIPLES:
1. Always show whose view this is ("Using as")
2. Balance first, then the expenses that explain it
3. Preview the split before saving
4. Same balance rule as the API (one engine, no UI-side copy)

The viewer is whoever is selected in the sidebar; it is passed
explicitly into every balance computation.
"""

import asyncio

import streamlit as st

from coinshire.balance import (
    describe_delta,
    describe_net,
    expense_delta,
    format_currency,
    share_fraction,
)
from coinshire.config import validate_all_settings
from coinshire.log import configure_logging
from coinshire.models.expense import ExpenseCreate
from coinshire.orchestrator import ExpenseFlow, create_app_components
from coinshire.services.storage import NotFoundError, StorageError
from coinshire.validation import InvalidExpenseError


# Page configuration
st.set_page_config(
    page_title="Coinshire",
    page_icon="🪙",
    layout="centered",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .balance-box {
        padding: 20px;
        border-radius: 10px;
        margin: 10px 0;
        text-align: center;
        font-size: 1.4em;
        font-weight: 600;
    }
    .owed { background-color: #d4edda; border-left: 5px solid #28a745; }
    .owes { background-color: #f8d7da; border-left: 5px solid #dc3545; }
    .settled { background-color: #f1f3f5; border-left: 5px solid #adb5bd; }
</style>
""", unsafe_allow_html=True)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_flow() -> ExpenseFlow:
    """Get or create the expense flow (cached)."""
    configure_logging()
    try:
        flow, _ = create_app_components()
        run_async(flow.initialize())
    except StorageError as e:
        st.error(f"Failed to initialize storage: {e}")
        flow, _ = create_app_components(backend="memory")
        run_async(flow.initialize())
    return flow


def reset_listing():
    """Start the expense list again from the newest entry."""
    st.session_state.offset = 0
    st.session_state.loaded = []
    st.session_state.has_more = True


def main():
    """Main application entry point."""
    flow = get_flow()
    users = run_async(flow.list_users())
    names = {user.id: user.name for user in users}

    if "offset" not in st.session_state:
        reset_listing()

    # Sidebar navigation
    st.sidebar.title("🪙 Coinshire")
    st.sidebar.markdown("---")

    viewer_id = st.sidebar.radio(
        "Using as:",
        options=[user.id for user in users],
        format_func=lambda user_id: names.get(user_id, user_id),
        on_change=reset_listing,
    )

    page = st.sidebar.radio(
        "Navigate to:",
        ["💸 Expenses", "⚙️ Settings"],
        index=0,
    )

    if page == "💸 Expenses":
        render_expenses_page(flow, viewer_id, names)
    else:
        render_settings_page(flow)


def render_balance_banner(net, symbol: str):
    """Show the viewer's overall balance."""
    css = "owed" if net > 0 else "owes" if net < 0 else "settled"
    st.markdown(
        f'<div class="balance-box {css}">{describe_net(net, symbol)}</div>',
        unsafe_allow_html=True,
    )


def render_add_expense_form(flow: ExpenseFlow, viewer_id: str, names: dict[str, str]):
    """Render the create-expense form."""
    symbol = flow.settings.currency_symbol
    other_ids = [user_id for user_id in names if user_id != viewer_id]

    with st.expander("➕ Add expense"):
        description = st.text_input(
            "Description",
            placeholder="e.g., Dinner, Uber, Groceries",
            key="new_description",
        )
        total = st.number_input(
            f"Total ({symbol})",
            min_value=0.0,
            step=0.01,
            format="%.2f",
            key="new_total",
        )
        paid_by = st.selectbox(
            "Who is paying",
            options=[viewer_id] + other_ids,
            format_func=lambda user_id: (
                f"{names[user_id]} (you)" if user_id == viewer_id else names[user_id]
            ),
            key="new_paid_by",
        )
        your_share = st.slider(
            "Your share (%)",
            min_value=0,
            max_value=100,
            value=flow.default_share_pct(viewer_id),
            step=1,
            key=f"new_share_{viewer_id}",
        )

        payload = ExpenseCreate(
            description=description,
            total=total,
            paid_by=paid_by,
            payer_share_pct=flow.payer_share_pct_for(viewer_id, paid_by, your_share),
        )

        # Preview with the same engine the balance endpoint uses
        if total and other_ids:
            other_id = next(user_id for user_id in names if user_id != paid_by)
            draft = flow.build_expense(payload, other_id, expense_id="preview")
            yours = total * share_fraction(draft, viewer_id)
            st.caption(
                f"You: {your_share}% ({format_currency(yours, symbol)}) · "
                f"Other: {100 - your_share}% ({format_currency(total - yours, symbol)}) · "
                f"{describe_delta(expense_delta(draft, viewer_id), draft, viewer_id, symbol)}"
            )

        if st.button("Save", type="primary"):
            try:
                run_async(flow.create_expense(payload))
                reset_listing()
                st.success("Expense saved")
                st.rerun()
            except InvalidExpenseError as e:
                st.error(flow.validator.get_user_friendly_summary(e.result))
            except StorageError as e:
                st.error(f"Failed to save: {e}")


def render_expenses_page(flow: ExpenseFlow, viewer_id: str, names: dict[str, str]):
    """Render the balance banner, the form and the expense list."""
    symbol = flow.settings.currency_symbol
    st.title(f"Hi, {names.get(viewer_id, viewer_id)}")

    balance = run_async(flow.get_balance(viewer_id))
    render_balance_banner(balance.net, symbol)

    render_add_expense_form(flow, viewer_id, names)

    st.markdown("---")
    st.subheader("Recent expenses")

    # Load the first page, or the next one on request
    if st.session_state.has_more and not st.session_state.loaded:
        load_more(flow)

    expenses = st.session_state.loaded
    if not expenses:
        st.info("No expenses yet. Use 'Add expense' to record the first one.")
        return

    for expense in expenses:
        delta = balance.by_expense.get(expense.id, 0)
        payer = "you" if expense.paid_by == viewer_id else names.get(expense.paid_by, "Unknown")

        col1, col2, col3 = st.columns([4, 3, 1])
        with col1:
            st.markdown(f"**{expense.description}**")
            st.caption(f"{expense.date.strftime('%d %b %Y')} • Paid by {payer}")
        with col2:
            st.markdown(f"**{format_currency(expense.amount, symbol)}**")
            label = describe_delta(delta, expense, viewer_id, symbol)
            if delta > 0:
                st.markdown(f":green[{label}]")
            elif delta < 0:
                st.markdown(f":red[{label}]")
            else:
                st.caption(label)
        with col3:
            if st.button("🗑️", key=f"delete_{expense.id}", help="Delete expense"):
                try:
                    run_async(flow.delete_expense(expense.id))
                except NotFoundError:
                    st.warning("That expense was already deleted.")
                reset_listing()
                st.rerun()

    if st.session_state.has_more:
        if st.button("Load more"):
            load_more(flow)
            st.rerun()


def load_more(flow: ExpenseFlow):
    """Fetch the next page of expenses into session state."""
    page_size = flow.settings.page_size
    batch = run_async(
        flow.list_expenses(limit=page_size, offset=st.session_state.offset)
    )
    st.session_state.loaded = st.session_state.loaded + batch
    st.session_state.offset += len(batch)
    if len(batch) < page_size:
        st.session_state.has_more = False


def render_settings_page(flow: ExpenseFlow):
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Storage")
    st.markdown(f"**Backend:** `{flow.settings.storage_backend}`")

    status = validate_all_settings()
    if status.get("google_sheets", False):
        st.success("✅ Google Sheets - Configured")
    else:
        error = status.get("google_sheets_error", "Not configured")
        st.warning(f"Google Sheets - {error}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file. "
        "See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()
