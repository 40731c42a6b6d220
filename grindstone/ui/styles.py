from __future__ import annotations


APP_CSS = """
Screen {
    background: $surface;
}

#title {
    width: 100%;
    content-align: center middle;
    text-style: bold;
    color: $accent;
    border-bottom: solid $primary;
    height: 3;
}

#views {
    height: 1fr;
}

#timer-view {
    align: center middle;
}

#clock {
    width: auto;
    margin: 1 0;
}

#clock.work {
    color: red;
}

#clock.short_break {
    color: green;
}

#clock.long_break {
    color: dodgerblue;
}

#progress {
    width: 60;
    margin-bottom: 1;
}

#phase, #session-info, #controls {
    width: 100%;
    content-align: center middle;
    text-align: center;
}

#session-info, #controls {
    color: $text-muted;
}

#history-view, #stats-view {
    padding: 1 2;
}

#notification {
    height: 1;
    width: 100%;
    text-align: center;
    text-style: bold;
}

#notification.warning {
    color: yellow;
}

#notification.error {
    color: red;
}

ModalScreen {
    align: center middle;
    background: $background 60%;
}

.modal {
    width: 70;
    height: auto;
    max-height: 90%;
    padding: 1 2;
    border: round $accent;
    background: $panel;
}

.modal-title {
    width: 100%;
    text-style: bold;
    content-align: center middle;
    margin-bottom: 1;
}

.modal-hint {
    color: $text-muted;
    margin-top: 1;
}

.modal-error {
    color: yellow;
    height: auto;
}

.form-row {
    height: auto;
}

.form-row Label {
    width: 28;
    padding-top: 1;
}

.form-row Input {
    width: 1fr;
}

#category-list {
    height: 8;
    border: solid $primary;
}

.button-row {
    height: auto;
    margin-top: 1;
}

.button-row Button {
    margin-right: 1;
}
"""
