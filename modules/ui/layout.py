"""Gradio layout composition for the countdown screen."""

from __future__ import annotations

from typing import Any, Optional

try:
    import gradio as gr
except ImportError:  # pragma: no cover
    gr = None  # type: ignore

from config.settings import AppConfig
from modules.services.countdown_service import CountdownService, build_service
from modules.ui.callbacks import build_callbacks


def build_app(config: AppConfig, service: Optional[CountdownService] = None) -> Any:
    """Compose and return the Gradio application."""
    if gr is None:
        raise RuntimeError("Gradio is not installed; install the project dependencies first.")

    service = service or build_service(config)
    callbacks_map = build_callbacks(config, service=service)

    with gr.Blocks(title="Fun Countdown") as demo:
        gr.Markdown("## Fun Countdown")

        with gr.Row():
            with gr.Column():
                description = gr.Textbox(
                    label="What are you waiting for?",
                    placeholder="Enter event description",
                )
                target_date = gr.Textbox(
                    label="Target Date",
                    placeholder="YYYY-MM-DD",
                )
                style = gr.Textbox(
                    label="Image Style (Optional)",
                    placeholder="e.g., anime, watercolor, pixel art",
                )
                start_btn = gr.Button("Start Countdown", variant="primary")

            with gr.Column():
                countdown_image = gr.Image(label="Countdown", type="filepath")
                status = gr.Markdown("Loading...")
                with gr.Row():
                    regenerate_btn = gr.Button("Regenerate")
                    save_btn = gr.Button("Save Image")
                save_status = gr.Markdown("")

        demo.load(
            fn=callbacks_map["on_load"],
            inputs=None,
            outputs=[countdown_image, status],
        )
        start_btn.click(
            fn=callbacks_map["on_start"],
            inputs=[description, target_date, style],
            outputs=[countdown_image, status],
        )
        regenerate_btn.click(
            fn=callbacks_map["on_regenerate"],
            inputs=None,
            outputs=[countdown_image, status],
        )
        save_btn.click(
            fn=callbacks_map["on_save_image"],
            inputs=None,
            outputs=[save_status],
        )

    return demo
