"""
Streamlit Frontend for the Contribution Ledger

A thin presentation shell over ContributionStore. It owns the widgets
(text inputs, date picker, table, buttons) and nothing else: every
change goes through a store operation, and the page is re-read from the
store after each one.

DESIGN PRINCIPLES:
1. One form for both adding and updating
2. Newest contributions first
3. Clear error messages in simple language
4. Running total always visible
"""

import asyncio
from datetime import date

import streamlit as st

from contribution_ledger.config import get_settings
from contribution_ledger.exceptions import LedgerError, NotFoundError, ValidationError
from contribution_ledger.store import ContributionStore, create_store


settings = get_settings().app

# Page configuration
st.set_page_config(
    page_title=settings.app_title,
    page_icon="💰",
    layout="centered",
)

# Custom CSS for the total banner
st.markdown("""
<style>
    .total-box {
        padding: 15px 20px;
        background-color: #4CAF50;
        border-radius: 10px;
        color: #fff;
        font-size: 1.4em;
        font-weight: bold;
        text-align: center;
        margin-top: 20px;
    }
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
def get_store() -> ContributionStore:
    """Get or create the store (cached for the server process)."""
    return run_async(create_store())


def reset_form() -> None:
    st.session_state.form_name = ""
    st.session_state.form_amount = ""
    st.session_state.form_date = date.today()


def start_edit(store: ContributionStore, contribution_id: str) -> None:
    try:
        contribution = store.begin_edit(contribution_id)
    except NotFoundError:
        st.session_state.flash = "That contribution no longer exists."
        return
    st.session_state.form_name = contribution.name
    st.session_state.form_amount = str(contribution.amount)
    st.session_state.form_date = contribution.as_date


def cancel_edit(store: ContributionStore) -> None:
    store.cancel_edit()
    reset_form()


def delete(store: ContributionStore, contribution_id: str) -> None:
    was_editing = store.editing_id == contribution_id
    try:
        run_async(store.remove(contribution_id))
    except NotFoundError:
        # Already gone; nothing to do
        pass
    if was_editing:
        reset_form()


def render_form(store: ContributionStore) -> None:
    """Render the add/update form."""
    editing = store.editing_id is not None

    with st.form("contribution_form", clear_on_submit=False):
        st.text_input("Name", key="form_name")
        st.text_input("Payment Amount", key="form_amount")
        st.date_input("Select Date", key="form_date")
        submitted = st.form_submit_button(
            "Update Contribution" if editing else "Add Contribution",
            type="primary",
        )

    if editing:
        st.button("Cancel editing", on_click=cancel_edit, args=(store,))

    if submitted:
        try:
            run_async(store.submit(
                st.session_state.form_name,
                st.session_state.form_amount,
                st.session_state.form_date,
            ))
        except ValidationError as e:
            for issue in e.issues:
                st.error(issue.message)
        except LedgerError as e:
            st.error(str(e))
        else:
            # Widgets are already drawn this run; reset on the next one
            st.session_state.reset_pending = True
            st.rerun()


def render_table(store: ContributionStore) -> None:
    """Render the contributions, newest first."""
    symbol = settings.currency_symbol
    listing = store.list_contributions()

    header = st.columns([2, 1, 1, 1])
    for column, title in zip(header, ["Name", "Amount", "Date", "Actions"]):
        column.markdown(f"**{title}**")

    if not listing:
        st.caption("No contributions yet.")
        return

    for contribution in listing:
        name_col, amount_col, date_col, actions_col = st.columns([2, 1, 1, 1])
        name_col.write(contribution.name)
        amount_col.write(f"{symbol}{contribution.amount}")
        date_col.write(contribution.date)
        edit_col, delete_col = actions_col.columns(2)
        edit_col.button(
            "Edit",
            key=f"edit-{contribution.id}",
            on_click=start_edit,
            args=(store, contribution.id),
        )
        delete_col.button(
            "Delete",
            key=f"delete-{contribution.id}",
            on_click=delete,
            args=(store, contribution.id),
        )


def main():
    """Main application entry point."""
    store = get_store()

    if "form_name" not in st.session_state or st.session_state.pop("reset_pending", False):
        reset_form()

    st.title(settings.app_title)

    flash = st.session_state.pop("flash", None)
    if flash:
        st.warning(flash)

    render_form(store)
    st.markdown("---")
    render_table(store)

    st.markdown(
        f'<div class="total-box">Total Payment: '
        f"{settings.currency_symbol}{store.total()}</div>",
        unsafe_allow_html=True,
    )


if __name__ == "__main__":
    main()
