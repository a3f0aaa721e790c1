"""CLI entrypoint for the SQL card-matching game."""

from __future__ import annotations

import argparse
import logging
import string
import time
from collections.abc import Callable
from pathlib import Path

from .ai_client import AIServiceError, MissingApiKeyError
from .deck_loader import DeckImportError, load_library
from .engine import FlipOutcome
from .listen import FileAudioPlayer
from .markup import markdown_to_terminal
from .models import Card, CardRole, GameCard
from .practice import PracticeGrade
from .service import GameService
from .session import Mode
from .timed import COUNTDOWN_SECONDS

InputFn = Callable[[str], str]
PrintFn = Callable[[str], None]
SleepFn = Callable[[float], None]
FLOW_BACK_COMMANDS = {":back", ":b"}
MENU_BACK_COMMANDS = {"b"}
MENU_QUIT_COMMANDS = {"q"}
FLOW_EXIT_COMMANDS = {":quit", ":exit", ":q"}
DEFAULT_DATA_DIR = Path(".sqlconcentration")
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


class QuitApp(Exception):
    """Signal immediate app exit from nested menu flows."""


def _service(data_dir: Path, print_fn: PrintFn) -> GameService:
    """Create app service with local settings database and audio folder."""
    player = FileAudioPlayer(data_dir / "audio", on_clip=lambda path: print_fn(f"Audio saved to {path}"))
    return GameService(db_path=data_dir / "settings.db", player=player)


def run(argv: list[str] | None = None) -> int:
    """Run the CLI application."""
    parser = argparse.ArgumentParser(prog="sqlconcentration", description="Card games for learning SQL commands")
    parser.add_argument("command", nargs="?", default="play", choices=["play", "decks"])
    parser.add_argument("--data-dir", type=Path, default=DEFAULT_DATA_DIR, help="Where settings and audio are kept")
    parser.add_argument("--deck", help="Library deck filename to start with")
    parser.add_argument("--log-level", default="WARNING", choices=LOG_LEVELS, type=str.upper)
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")

    if args.command == "decks":
        return list_decks()
    return play_shell(data_dir=args.data_dir, deck=args.deck)


def list_decks(print_fn: PrintFn = print) -> int:
    """Print the bundled deck library."""
    entries = load_library()
    if not entries:
        print_fn("No decks available.")
        return 1
    name_width = max(len("Deck"), max(len(entry.name) for entry in entries))
    file_width = max(len("File"), max(len(entry.filename) for entry in entries))
    header = f"{'Deck':<{name_width}} {'File':<{file_width}} {'Cards':>5} Difficulty"
    print_fn(header)
    print_fn("-" * len(header))
    for entry in entries:
        print_fn(f"{entry.name:<{name_width}} {entry.filename:<{file_width}} {entry.card_count:>5} {entry.difficulty}")
    return 0


def play_shell(
    input_fn: InputFn = input,
    print_fn: PrintFn = print,
    sleep_fn: SleepFn = time.sleep,
    data_dir: Path = DEFAULT_DATA_DIR,
    deck: str | None = None,
) -> int:
    """Run persistent menu-driven shell."""
    service = _service(data_dir, print_fn)
    try:
        if deck:
            service.select_deck(deck)
        try:
            while True:
                service.session.transition(Mode.MODE_SELECT)
                current = service.deck
                print_fn("\n=== SQL Concentration ===")
                print_fn(f"Deck: {current.name} ({len(current)} cards)")
                print_fn("1) Memorize & match")
                print_fn("2) Drag and drop")
                print_fn("3) Listen")
                print_fn("4) Practice")
                print_fn("5) Timed")
                print_fn("6) Library")
                print_fn("7) Import deck")
                print_fn("8) Settings")
                print_fn("q) Quit")
                choice = input_fn("Choose: ").strip().lower()

                if choice == "1":
                    _pre_game_flow(service, input_fn, print_fn, sleep_fn)
                elif choice == "2":
                    _drag_drop_flow(service, input_fn, print_fn)
                elif choice == "3":
                    _listen_flow(service, input_fn, print_fn)
                elif choice == "4":
                    _practice_flow(service, input_fn, print_fn, sleep_fn)
                elif choice == "5":
                    _timed_flow(service, input_fn, print_fn)
                elif choice == "6":
                    _library_flow(service, input_fn, print_fn)
                elif choice == "7":
                    _import_deck_flow(service, input_fn, print_fn)
                elif choice == "8":
                    _settings_flow(service, input_fn, print_fn)
                elif choice in MENU_QUIT_COMMANDS:
                    return 0
                else:
                    print_fn("Invalid choice.")
        except QuitApp:
            return 0
    finally:
        service.close()


def _wait_until(service: GameService, sleep_fn: SleepFn, done: Callable[[], bool]) -> None:
    """Sleep through scheduled work until `done()` holds or nothing is scheduled."""
    scheduler = service.session.scheduler
    while not done():
        deadline = scheduler.next_deadline()
        if deadline is None:
            return
        sleep_fn(max(0.0, deadline - scheduler.clock()))
        scheduler.tick()


def _is_exit(text: str, *, menu: bool = True) -> bool:
    """Return True for a back command; raise QuitApp for a quit command."""
    lowered = text.strip().lower()
    if lowered in FLOW_EXIT_COMMANDS or (menu and lowered in MENU_QUIT_COMMANDS):
        raise QuitApp()
    return lowered in FLOW_BACK_COMMANDS or (menu and lowered in MENU_BACK_COMMANDS)


def _pre_game_flow(service: GameService, input_fn: InputFn, print_fn: PrintFn, sleep_fn: SleepFn) -> None:
    """Memorisation screen with optional auto-start countdown."""
    session = service.session
    session.transition(Mode.PRE_GAME)
    rounds = session.rounds
    while session.mode is Mode.PRE_GAME:
        print_fn("\n=== Memorize ===")
        for card in rounds.display_cards:
            command = "???" if rounds.commands_hidden else card.command
            description = "???" if rounds.explanations_hidden else card.description
            print_fn(f"[{card.category or 'SQL'}] {command:<20} {description}")
        if rounds.seconds_until_start is not None:
            minutes, seconds = divmod(rounds.seconds_until_start, 60)
            print_fn(f"Auto-start in: {minutes}:{seconds:02d}")
        print_fn("s) Start game  r) Scramble  c) Hide/show commands  e) Hide/show explanations  b) Back")
        choice = input_fn("Choose: ").strip().lower()
        session.tick()
        if session.mode is Mode.CONCENTRATION:
            print_fn("Time is up, starting the game.")
            break
        if _is_exit(choice):
            return
        if choice == "s":
            session.start_game()
        elif choice == "r":
            rounds.scramble_display()
        elif choice == "c":
            rounds.toggle_commands()
        elif choice == "e":
            rounds.toggle_explanations()
        else:
            print_fn("Invalid choice.")

    if session.mode is Mode.CONCENTRATION:
        _concentration_flow(service, input_fn, print_fn, sleep_fn)


def _face(game_card: GameCard) -> str:
    if game_card.role is CardRole.COMMAND:
        return game_card.card.command
    return game_card.card.description or game_card.card.command


def _render_board(service: GameService, print_fn: PrintFn) -> None:
    engine = service.session.engine
    state = engine.state
    print_fn(f"\nRound {state.round_number} | Score: {state.score} | Attempts: {state.attempts}")
    print_fn(f"Matches: {len(state.matched_pair_ids)}/{engine.card_count}")
    for position, game_card in enumerate(engine.board, start=1):
        if game_card.matched:
            label = f"* {_face(game_card)}"
        elif position - 1 in engine.selection:
            label = _face(game_card)
        else:
            label = "SQL" if game_card.role is CardRole.COMMAND else "..."
        print_fn(f"{position:>2}) {label}")


def _concentration_flow(service: GameService, input_fn: InputFn, print_fn: PrintFn, sleep_fn: SleepFn) -> None:
    """Flip pairs until the board is cleared."""
    session = service.session
    engine = session.engine
    if engine.card_count == 0:
        print_fn("This deck has no cards to match.")
        return

    while True:
        if session.last_round is not None:
            summary = session.last_round
            print_fn(f"\nRound {summary.round_number} complete!")
            print_fn(f"Score: {summary.score}")
            print_fn(f"Attempts: {summary.attempts}")
            choice = input_fn("p) Play again  n) Next round  b) Back: ").strip().lower()
            if _is_exit(choice):
                return
            if choice == "p":
                session.restart_round()
            elif choice == "n":
                session.next_round()
            else:
                print_fn("Invalid choice.")
            continue

        _render_board(service, print_fn)
        choice = input_fn("Flip card # (r = restart, b = back): ").strip().lower()
        if _is_exit(choice):
            return
        if choice == "r":
            session.restart_round()
            continue
        if not choice.isdigit():
            print_fn("Invalid choice.")
            continue

        result = engine.flip(int(choice) - 1)
        if result.outcome is FlipOutcome.IGNORED:
            print_fn("That card cannot be flipped.")
        elif result.outcome is FlipOutcome.FLIPPED:
            print_fn(f"Flipped: {_face(engine.board[result.position])}")
        else:
            for position in engine.selection:
                print_fn(f"Flipped: {_face(engine.board[position])}")
            print_fn("Match!" if result.outcome is FlipOutcome.MATCH else "No match.")
            _wait_until(service, sleep_fn, lambda: not engine.awaiting_resolution)


def _drag_drop_flow(service: GameService, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Pair each command with its description by number and letter."""
    session = service.session
    session.transition(Mode.DRAG_DROP)
    board = session.drag_drop
    letters = string.ascii_lowercase
    while not board.complete:
        remaining = [card for card in board.items if not board.is_disabled(card.id)]
        print_fn(f"\n=== Drag and Drop === Matches: {board.matches}/{len(board.items)} Attempts: {board.attempts}")
        for idx, card in enumerate(remaining, start=1):
            print_fn(f"{idx}) {card.command}")
        for idx, card in enumerate(board.zones):
            done = " (placed)" if board.is_disabled(card.id) else ""
            print_fn(f"{letters[idx % len(letters)]}{idx // len(letters) or ''}) {card.description}{done}")
        choice = input_fn("Drop (e.g. '1 a', b = back): ").strip().lower()
        if _is_exit(choice):
            return
        parts = choice.split()
        if len(parts) != 2 or not parts[0].isdigit():
            print_fn("Invalid choice.")
            continue
        item_index = int(parts[0]) - 1
        zone_index = _zone_index(parts[1])
        if not (0 <= item_index < len(remaining)) or zone_index is None or zone_index >= len(board.zones):
            print_fn("Invalid choice.")
            continue
        if board.drop(remaining[item_index].id, board.zones[zone_index].id):
            print_fn("Correct!")
        else:
            print_fn("Not a match.")

    print_fn(f"\nAll matched in {board.attempts} attempts.")


def _zone_index(label: str) -> int | None:
    letters = string.ascii_lowercase
    if not label or label[0] not in letters:
        return None
    suffix = label[1:]
    if suffix and not suffix.isdigit():
        return None
    return letters.index(label[0]) + len(letters) * int(suffix or 0)


def _listen_flow(service: GameService, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Read cards aloud and ask for longer explanations."""
    session = service.session
    session.transition(Mode.LISTEN)
    cards = session.cards
    while True:
        settings = service.settings
        print_fn("\n=== Listen ===")
        for idx, card in enumerate(cards, start=1):
            print_fn(f"{idx}) {card.command} [{card.category or 'SQL'}] {card.description}")
        explanation_flag = "on" if settings.listen_speak_explanation else "off"
        example_flag = "on" if settings.listen_speak_example else "off"
        print_fn(f"Speak explanation: {explanation_flag}  Speak example: {example_flag}")
        print_fn("#) Play card  a #) Ask AI  p) Play all  t1/t2) Toggle explanation/example  x) Clear cache  b) Back")
        choice = input_fn("Choose: ").strip().lower()
        if _is_exit(choice):
            return
        try:
            if choice.isdigit():
                card = _pick(cards, choice)
                if card is None:
                    print_fn("Invalid choice.")
                elif not service.play_card(card):
                    print_fn("Nothing to say for this card with the current toggles.")
            elif choice.startswith("a "):
                card = _pick(cards, choice[2:].strip())
                if card is None:
                    print_fn("Invalid choice.")
                else:
                    print_fn(f"\nAI: {card.command}")
                    print_fn(markdown_to_terminal(service.explain(card)))
            elif choice == "p":
                played = service.play_all(on_error=lambda card, exc: print_fn(f"Error for {card.command}: {exc}"))
                print_fn(f"Played {played} cards.")
            elif choice == "t1":
                service.update_settings({"listenSpeakExplanation": not settings.listen_speak_explanation})
            elif choice == "t2":
                service.update_settings({"listenSpeakExample": not settings.listen_speak_example})
            elif choice == "x":
                service.clear_audio_cache()
                print_fn("Cache cleared!")
            else:
                print_fn("Invalid choice.")
        except MissingApiKeyError:
            print_fn("Please set your OpenAI API key in Settings.")
        except AIServiceError as exc:
            print_fn(f"Error: {exc}")


def _pick(cards: tuple[Card, ...], text: str) -> Card | None:
    if not text.isdigit():
        return None
    index = int(text) - 1
    return cards[index] if 0 <= index < len(cards) else None


def _practice_flow(service: GameService, input_fn: InputFn, print_fn: PrintFn, sleep_fn: SleepFn) -> None:
    """Type the command for each description."""
    session = service.session
    session.transition(Mode.PRACTICE)
    practice = session.practice
    print_fn("\n=== Practice ===")
    print_fn("Type the SQL command. :hint for a hint, :skip to skip, :b to leave.")
    while practice.current is not None:
        card = practice.current
        state = practice.state
        print_fn(f"\n[{state.index + 1}/{len(state.order)}] {card.description}")
        answer = input_fn("Command: ").strip()
        lowered = answer.lower()
        if _is_exit(answer, menu=False):
            tally = practice.tally()
            print_fn(f"Practice ended early: {tally.correct_count} correct, {tally.incorrect_count} incorrect")
            return
        if lowered == ":hint":
            print_fn(f"Hint: {practice.hint()}")
            continue
        if lowered == ":skip":
            practice.skip()
            continue
        grade = practice.grade(answer)
        if grade is not None:
            _print_grade(grade, print_fn)
            _wait_until(service, sleep_fn, lambda: not practice.awaiting_advance)

    tally = session.last_practice or practice.tally()
    print_fn(f"\nPractice complete: {tally.correct_count} correct, {tally.incorrect_count} incorrect")


def _print_grade(grade: PracticeGrade, print_fn: PrintFn) -> None:
    if grade.correct:
        print_fn("Correct.")
    else:
        print_fn(f"Incorrect. Expected: {grade.expected}")


def _timed_flow(service: GameService, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Recall each card before its countdown runs out."""
    session = service.session
    session.transition(Mode.TIMED)
    timed = session.timed
    print_fn("\n=== Timed ===")
    print_fn(f"You have {COUNTDOWN_SECONDS} seconds per card. y = I know it, n = I don't, b = leave.")
    while timed.current is not None:
        card = timed.current
        index = timed.state.index
        print_fn(f"\n{card.command}  (score {timed.state.score})")
        choice = input_fn("Know it? ").strip().lower()
        session.tick()
        if _is_exit(choice):
            print_fn(f"Timed run ended early with {timed.state.score} points.")
            return
        if index != timed.state.index:
            print_fn(f"Too slow! {card.command}: {card.description}")
            continue
        if choice == "y":
            points = timed.thumbs_up(index)
            print_fn(f"+{points} points. {card.description}")
        elif choice == "n":
            timed.thumbs_down(index)
            print_fn(f"No points. {card.command}: {card.description}")
        else:
            print_fn("Invalid choice.")

    score = session.last_timed_score if session.last_timed_score is not None else timed.state.score
    print_fn(f"\nTimed run complete. Final score: {score}")


def _library_flow(service: GameService, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Pick a bundled deck."""
    entries = service.list_library()
    print_fn("\n=== Library ===")
    if not entries:
        print_fn("No decks available.")
        return
    for idx, entry in enumerate(entries, start=1):
        difficulty = f" [{entry.difficulty}]" if entry.difficulty else ""
        print_fn(f"{idx}) {entry.name}{difficulty} - {entry.card_count} commands")
        if entry.description:
            print_fn(f"   {entry.description}")
    print_fn("b) Back")
    choice = input_fn("Choose deck: ").strip().lower()
    if _is_exit(choice):
        return
    if not choice.isdigit() or not (0 <= int(choice) - 1 < len(entries)):
        print_fn("Invalid choice.")
        return
    deck = service.select_deck(entries[int(choice) - 1].filename)
    print_fn(f"Loaded '{deck.name}' ({len(deck)} cards).")


def _import_deck_flow(service: GameService, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Replace the active deck with a JSON file."""
    print_fn("\n=== Import Deck ===")
    path_text = input_fn("Deck file path: ").strip()
    if not path_text:
        print_fn("File path is required.")
        return
    try:
        deck = service.import_deck(path_text)
    except DeckImportError as exc:
        print_fn(f"Import failed: {exc}")
        return
    print_fn(f"Imported '{deck.name}' ({len(deck)} cards).")


def _settings_flow(service: GameService, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Show and edit settings."""
    while True:
        settings = service.settings
        key_label = "set" if settings.resolved_api_key() else "not set"
        print_fn("\n=== Settings ===")
        print_fn(f"1) Auto-start memorize timer: {'on' if settings.auto_advance else 'off'}")
        print_fn(f"2) Timer duration (seconds): {settings.timer_duration}")
        print_fn(f"3) OpenAI API key: {key_label}")
        print_fn(f"4) Listen speaks explanation: {'on' if settings.listen_speak_explanation else 'off'}")
        print_fn(f"5) Listen speaks example: {'on' if settings.listen_speak_example else 'off'}")
        print_fn(f"Matched pairs: {settings.matched_pair_behavior.value}")
        print_fn("b) Back")
        choice = input_fn("Choose setting: ").strip().lower()
        if _is_exit(choice):
            return
        if choice == "1":
            service.update_settings({"autoAdvance": not settings.auto_advance})
        elif choice == "2":
            value = input_fn("Seconds: ").strip()
            updated = service.update_settings({"timerDuration": value})
            if not value.isdigit() or updated.timer_duration != int(value):
                print_fn("Invalid duration; keeping the previous value.")
        elif choice == "3":
            service.update_settings({"openaiApiKey": input_fn("API key: ").strip()})
        elif choice == "4":
            service.update_settings({"listenSpeakExplanation": not settings.listen_speak_explanation})
        elif choice == "5":
            service.update_settings({"listenSpeakExample": not settings.listen_speak_example})
        else:
            print_fn("Invalid choice.")


def main_entry() -> None:
    """Console script entrypoint."""
    raise SystemExit(run())


if __name__ == "__main__":  # pragma: no cover
    main_entry()
