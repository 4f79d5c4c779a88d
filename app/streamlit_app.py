"""Streamlit interface for ReceiptLab."""

from __future__ import annotations

import pandas as pd
import streamlit as st

from receiptlab.agents.image_client import GeneratedImage, GenerationGateway, build_gateway
from receiptlab.agents.prompt_builder import bet_type_label, format_amount
from receiptlab.config import get_settings
from receiptlab.data.catalog import games_by_league, get_game
from receiptlab.errors import ReceiptGenerationError
from receiptlab.tickets.engine import build_ticket, combine_odds, potential_winnings
from receiptlab.tickets.selection import SelectionSet
from receiptlab.tickets.types import Game

settings = get_settings()

PRESET_STAKES = (10, 50, 100, 200, 500)

st.set_page_config(page_title="ReceiptLab", layout="wide", page_icon="⚽")
st.title("⚽ ReceiptLab")
st.caption("Novelty betting receipts from finished games. Entertainment purposes only.")


@st.cache_resource(show_spinner=False)
def load_gateway() -> GenerationGateway:
    return build_gateway(settings)


def _state() -> None:
    st.session_state.setdefault("slip", SelectionSet())
    st.session_state.setdefault("stake", float(settings.default_stake))
    st.session_state.setdefault("is_generating", False)
    st.session_state.setdefault("image_url", None)
    st.session_state.setdefault("error", None)


def _toggle(game_id: str) -> None:
    st.session_state.slip.toggle(get_game(game_id))


def _remove(game_id: str) -> None:
    st.session_state.slip.remove(game_id)
    st.session_state[f"pick_{game_id}"] = False


def _set_stake(amount: float) -> None:
    st.session_state.stake = float(amount)


def _game_label(game: Game) -> str:
    return (
        f"{game.home_team} {game.score} {game.away_team}  ·  {game.date} {game.time}  ·  "
        f"1 {game.odds_1:.2f} | X {game.odds_x:.2f} | 2 {game.odds_2:.2f}"
    )


def render_game_picker() -> None:
    st.subheader("Finished games")
    for league, games in games_by_league().items():
        st.markdown(f"**{league}**")
        for game in games:
            st.checkbox(
                _game_label(game),
                key=f"pick_{game.id}",
                on_change=_toggle,
                args=(game.id,),
            )


def render_bet_slip(slip: SelectionSet) -> None:
    st.subheader(f"My slip ({len(slip)})")
    if not slip:
        st.info("Pick games from the list.")
        return

    rows = [
        {
            "league": sel.game.league,
            "match": f"{sel.game.home_team} - {sel.game.away_team}",
            "score": sel.game.score,
            "bet": bet_type_label(sel.game.winning_bet),
            "odds": format_amount(sel.game.odds),
        }
        for sel in slip
    ]
    st.dataframe(pd.DataFrame(rows), hide_index=True, use_container_width=True)
    for sel in slip:
        st.button(f"✕ {sel.game.home_team} - {sel.game.away_team}", key=f"remove_{sel.game.id}", on_click=_remove, args=(sel.game.id,))

    cols = st.columns(len(PRESET_STAKES))
    for col, amount in zip(cols, PRESET_STAKES):
        col.button(f"₪{amount}", key=f"preset_{amount}", on_click=_set_stake, args=(amount,))
    st.number_input("Stake (₪)", min_value=0.0, step=10.0, key="stake")

    total_odds = combine_odds(slip)
    col_odds, col_win = st.columns(2)
    col_odds.metric("Total odds", format_amount(total_odds))
    col_win.metric("Potential winnings", f"₪{format_amount(potential_winnings(st.session_state.stake, total_odds))}")


def generate(slip: SelectionSet) -> None:
    if st.session_state.is_generating or not slip:
        return
    stake = st.session_state.stake
    if stake <= 0:
        st.session_state.error = "Invalid stake amount"
        return
    st.session_state.is_generating = True
    st.session_state.error = None
    try:
        ticket = build_ticket(slip.selections, stake)
        with st.spinner(f"Printing receipt {ticket.receipt_number}..."):
            st.session_state.image_url = load_gateway().generate_receipt(ticket).url
    except ReceiptGenerationError as exc:
        st.session_state.error = str(exc)
    finally:
        st.session_state.is_generating = False


def _clear_image() -> None:
    st.session_state.image_url = None


@st.cache_data(show_spinner=False)
def _image_bytes(url: str) -> tuple[bytes, str]:
    payload = GeneratedImage(url=url).download()
    return payload.data, payload.mime_type


def render_generated_image(url: str) -> None:
    st.image(url, caption="Generated receipt")
    download_col, clear_col = st.columns(2)
    try:
        data, mime_type = _image_bytes(url)
    except ReceiptGenerationError as exc:
        download_col.warning(f"Download unavailable: {exc}")
    else:
        download_col.download_button("Download receipt", data=data, file_name="winner-receipt.png", mime=mime_type)
    clear_col.button("Close", on_click=_clear_image)


_state()
slip: SelectionSet = st.session_state.slip

picker_col, slip_col = st.columns([3, 2])
with picker_col:
    render_game_picker()
with slip_col:
    render_bet_slip(slip)
    if slip:
        st.button(
            "Generate receipt",
            type="primary",
            disabled=st.session_state.is_generating,
            on_click=generate,
            args=(slip,),
        )
    if st.session_state.error:
        st.error(st.session_state.error)
    if st.session_state.image_url:
        render_generated_image(st.session_state.image_url)
