"""Prompt assembly for the receipt image models.

Every string that must appear on the printed receipt is emitted in double
quotes and copied verbatim by the model, so numbers are always formatted
with exactly two decimals and never localized.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

from receiptlab.agents.reference_images import ReferenceImage
from receiptlab.tickets.types import BetType, Selection, Ticket

MAX_REFERENCE_IMAGES = 3

LOGO_LABEL = "WinnerLINE"
RECEIPT_LABEL = "קבלה"
VERSUS_WORD = "נגד"
CURRENCY = "₪"

BET_TYPE_LABELS: dict[BetType, str] = {
    BetType.HOME: "1",
    BetType.DRAW: "X",
    BetType.AWAY: "2",
    BetType.HOME_OR_DRAW: "1X",
    BetType.DRAW_OR_AWAY: "X2",
    BetType.HOME_OR_AWAY: "12",
    BetType.OVER: "מעל",
    BetType.UNDER: "מתחת",
}

REFERENCE_INSTRUCTIONS = """REFERENCE PHOTOS: These are REAL photographs of actual Israeli Winner betting receipts. Study EVERYTHING about these photos:
- The exact way human hands hold the paper
- The realistic lighting and shadows
- The paper texture and slight imperfections
- The thermal print quality
- The natural, candid feel of the photos

Your generated image MUST match this level of photorealism. It should be IMPOSSIBLE to tell your image apart from these real photos:"""


class PromptStyle(str, Enum):
    PHOTOREALISTIC = "photorealistic"
    TYPOGRAPHY = "typography"


@dataclass(frozen=True)
class GenerationRequest:
    prompt: str
    references: tuple[ReferenceImage, ...] = field(default_factory=tuple)
    reference_instructions: str = REFERENCE_INSTRUCTIONS


def bet_type_label(bet_type: BetType | str) -> str:
    return BET_TYPE_LABELS[BetType(bet_type)]


def format_amount(value: float) -> str:
    return f"{value:.2f}"


def _selection_block(index: int, selection: Selection) -> str:
    game = selection.game
    return "\n".join(
        [
            f'"משחק {index}:"',
            f'- League (Hebrew text): "{game.league}"',
            f'- Home team (Hebrew text): "{game.home_team}"',
            f'- The word "{VERSUS_WORD}" (versus)',
            f'- Away team (Hebrew text): "{game.away_team}"',
            f'- "תוצאה:" followed by "{game.score}"',
            f'- "ניחוש:" followed by "{bet_type_label(game.winning_bet)}"',
            f'- "מכפיל:" followed by "{format_amount(game.odds)}"',
        ]
    )


def build_receipt_text(ticket: Ticket) -> str:
    """The exact receipt content shared by every prompt style."""

    games = "\n\n".join(
        _selection_block(idx, sel) for idx, sel in enumerate(ticket.selections, start=1)
    )
    return f"""Header: "{LOGO_LABEL}" logo with checkered flag, then "{RECEIPT_LABEL}" below

Receipt details:
"מספר קבלה:" "{ticket.receipt_number}"
"תאריך:" "{ticket.date}"
"שעה:" "{ticket.time}"
"סניף:" "({ticket.branch_id}) {ticket.branch_name}"

Games ({len(ticket.selections)}):
{games}

Summary:
"סכום:" "{CURRENCY}{format_amount(ticket.stake)}"
"מכפיל כולל:" "{format_amount(ticket.total_odds)}"
"זכייה:" "{CURRENCY}{format_amount(ticket.winnings)}"

Footer: Barcode with numbers"""


_PHOTOREALISTIC_TEMPLATE = """SUPER IMPORTANT: Generate an EXTREMELY PHOTOREALISTIC image that looks EXACTLY like a real photograph taken with an iPhone camera. This must be INDISTINGUISHABLE from a real photo.

The image shows a REAL Israeli WinnerLINE betting receipt held in a REAL human hand.

=== PHOTOREALISM REQUIREMENTS (CRITICAL) ===
- This MUST look like a real iPhone photo, NOT a render or illustration
- Real human hand with visible skin texture, pores, fingernails, natural skin tone variations
- Natural lighting with soft shadows as if taken indoors
- Slight motion blur or focus imperfections like a real phone photo
- The paper should have REAL thermal paper texture - slightly shiny, with micro-imperfections
- Natural paper curl and slight wrinkles from being held
- Realistic ambient shadows where fingers grip the paper
- Background should be slightly out of focus (depth of field)
- Paper edges should show natural wear or slight fraying
- The hand position should look natural and candid, not posed

=== HEBREW TEXT (EXACT - DO NOT MODIFY) ===
{receipt_text}

=== PRINTING STYLE ===
- Black thermal printer ink on white receipt paper
- Monospace font typical of thermal printers
- Hebrew text RIGHT-TO-LEFT
- Clean, legible characters
- NO green stamps or winner badges

REMEMBER: The final image must be SO REALISTIC that someone would believe it's a real photo of a real betting receipt. Focus on photographic realism above all else."""

_TYPOGRAPHY_TEMPLATE = """Generate an image of an Israeli "Winner" sports betting receipt printed on thermal paper, photographed flat on a table.

=== TEXT CONTENT (COPY EVERY QUOTED STRING CHARACTER FOR CHARACTER) ===
{receipt_text}

=== TYPOGRAPHY REQUIREMENTS (CRITICAL) ===
- Every quoted string above must appear exactly once, spelled exactly as given
- Do not translate, transliterate, round or reformat any number
- Hebrew text is RIGHT-TO-LEFT; numbers stay left-to-right
- Monospace thermal printer font, black ink, evenly spaced lines
- Games listed in the order given, one block per game

Style: clean thermal print, white paper with slight texture and soft shadows.
All text must be in Hebrew except for numbers and the "WinnerLINE" logo."""

_TEMPLATES = {
    PromptStyle.PHOTOREALISTIC: _PHOTOREALISTIC_TEMPLATE,
    PromptStyle.TYPOGRAPHY: _TYPOGRAPHY_TEMPLATE,
}


def build_receipt_prompt(ticket: Ticket, style: PromptStyle | str = PromptStyle.PHOTOREALISTIC) -> str:
    template = _TEMPLATES[PromptStyle(style)]
    return template.format(receipt_text=build_receipt_text(ticket))


def build_generation_request(
    ticket: Ticket,
    references: Sequence[ReferenceImage] = (),
    style: PromptStyle | str = PromptStyle.PHOTOREALISTIC,
) -> GenerationRequest:
    return GenerationRequest(
        prompt=build_receipt_prompt(ticket, style),
        references=tuple(references[:MAX_REFERENCE_IMAGES]),
    )
