import argparse
import logging
from dataclasses import replace

import pygame

from config.settings import load_settings
from data.models import TEST_TYPES
from lab.input import InputManager
from lab.renderer import Renderer
from lab.responses import Viewport, hit_radius
from lab.runtime.paths import default_export_dir, default_results_path
from lab.scene import LabScene


def parse_args():
    parser = argparse.ArgumentParser(description="Eye & Cognition Lab: saccade and Stroop tests")
    parser.add_argument("--test", choices=TEST_TYPES, help="start this test right away")
    parser.add_argument("--trials", type=int, help="number of trials per test")
    parser.add_argument("--seed", type=int, help="seed for reproducible trial sequences")
    parser.add_argument("--export-dir", help="where E saves JSON/CSV reports")
    args = parser.parse_args()
    if args.trials is not None and args.trials <= 0:
        parser.error("--trials must be positive")
    return args


def main() -> None:
    args = parse_args()
    config = load_settings()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # параметры командной строки важнее переменных окружения
    if args.trials is not None or args.seed is not None:
        session = config.session
        if args.trials is not None:
            session = replace(session, n_trials=args.trials)
        if args.seed is not None:
            session = replace(session, seed=args.seed)
        config = replace(config, session=session)

    pygame.init()

    # 1. Создаём окно
    window = config.window
    screen = pygame.display.set_mode((window.width, window.height))
    pygame.display.set_caption(window.title)
    clock = pygame.time.Clock()

    # 2. Вспомогательные объекты
    radius = hit_radius(Viewport(window.width, window.height), config.saccade)
    renderer = Renderer(screen, target_radius_px=int(round(radius)), stroop=config.stroop)
    input_manager = InputManager(key_map=config.stroop.key_map)

    scene = LabScene(
        screen=screen,
        renderer=renderer,
        input_manager=input_manager,
        config=config,
        results_path=config.results_path or default_results_path(),
        export_dir=args.export_dir or config.export_dir or default_export_dir(),
    )
    if args.test:
        scene.start(args.test)

    # -------------------------------------------------
    # Главный цикл
    # -------------------------------------------------

    running = True
    while running:
        clock.tick(window.fps)

        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            scene.handle_event(event)

        scene.update()

    pygame.quit()

    for test_type, results in scene.get_results().items():
        correct = sum(1 for r in results if r.correct)
        print(f"{test_type}: {correct}/{len(results)} correct")


if __name__ == "__main__":
    main()
