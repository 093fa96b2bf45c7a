"""Entry point for the superlaser sequence viewer."""
from __future__ import annotations

import argparse
import logging
from typing import Dict, List, Optional

import pygame

from rendering.draw_system import WireframeRenderer
from rendering.opengl_context import initialize_gl, resize_viewport
from superlaser.context import SimulationContext
from superlaser.settings import Settings, SettingsError, configure_logging, load_settings
from superlaser.stages import (
    ANALYZE,
    EXAMINE,
    EXPLODE,
    FIRE,
    HYPERSPACE,
    POWER_UP,
    RESET,
    ZOOM_ENGINES,
)
from ui.control_panel import ControlPanel
from ui.info_panel import InfoPanel
from ui.layout import UILayout

LOGGER = logging.getLogger(__name__)

KEY_TRIGGERS: Dict[int, str] = {
    pygame.K_1: HYPERSPACE,
    pygame.K_2: ZOOM_ENGINES,
    pygame.K_3: POWER_UP,
    pygame.K_4: EXAMINE,
    pygame.K_5: FIRE,
    pygame.K_6: ANALYZE,
    pygame.K_7: EXPLODE,
    pygame.K_r: RESET,
}


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Scripted Death Star superlaser sequence")
    parser.add_argument("--settings", help="JSON file overriding sequence/display settings")
    parser.add_argument("--log-level", default="INFO", help="logging level (default: INFO)")
    parser.add_argument(
        "--fullscreen", action="store_true", help="open a fullscreen window"
    )
    return parser.parse_args(argv)


def run(settings: Settings, fullscreen: bool = False) -> None:
    display_settings = settings.display
    pygame.init()
    pygame.display.set_caption("Superlaser")
    flags = pygame.OPENGL | pygame.DOUBLEBUF
    if fullscreen or display_settings.fullscreen:
        pygame.display.set_mode((0, 0), flags | pygame.FULLSCREEN)
    else:
        pygame.display.set_mode(display_settings.window_size, flags | pygame.RESIZABLE)
    window_size = pygame.display.get_surface().get_size()
    layout = UILayout(window_size)

    initialize_gl(window_size)

    renderer = WireframeRenderer(
        layout, star_count=display_settings.star_count, seed=settings.sequence.seed
    )
    info_panel = InfoPanel(layout)
    controls = ControlPanel(layout)
    context = SimulationContext(
        renderer,
        info_panel,
        settings.sequence,
        on_enabled=controls.enable_only,
        viewport_size=layout.scene_rect.size,
    )
    controls.enable_only(context.machine.legal_trigger)

    clock = pygame.time.Clock()
    running = True
    while running:
        dt = clock.tick(display_settings.frame_rate) / 1000.0
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    running = False
                elif event.key in KEY_TRIGGERS:
                    context.on_trigger(KEY_TRIGGERS[event.key])
            elif event.type == pygame.VIDEORESIZE:
                pygame.display.set_mode(event.size, flags | pygame.RESIZABLE)
                resize_viewport(event.size)
                window_size = event.size
                layout.update(window_size)
                controls.update_layout()
                context.camera.update_viewport(layout.scene_rect.size)
            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                if layout.is_in_controls(event.pos):
                    action = controls.handle_mouse_click(event.pos)
                    if action is not None:
                        context.on_trigger(action)
            elif event.type == pygame.MOUSEWHEEL:
                if layout.is_in_scene(pygame.mouse.get_pos()):
                    context.camera.zoom(event.y)

        context.tick(dt)
        info_panel.draw()
        controls.draw()
        pygame.display.flip()

    pygame.quit()


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    try:
        configure_logging(args.log_level)
        settings = load_settings(args.settings)
    except SettingsError as exc:
        logging.basicConfig()
        LOGGER.error("Invalid settings: %s", exc)
        return 2
    run(settings, fullscreen=args.fullscreen)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
