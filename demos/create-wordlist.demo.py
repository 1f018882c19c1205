"""Demo: create a custom word list in Bleep That Sh*t!

Uses the animated helpers throughout; expects the app on localhost:3004.
"""

from demo_recorder import DemoContext

SCROLL_TO_CENTER = """
(selector) => {
  const element = document.querySelector(selector);
  if (!element) return;
  const rect = element.getBoundingClientRect();
  const elementCenter = rect.top + rect.height / 2;
  window.scrollBy({ top: elementCenter - window.innerHeight / 2, behavior: 'smooth' });
}
"""

SET_COLOR = """
(color) => {
  const picker = document.querySelector('[data-testid="color-picker"]');
  if (!picker) return;
  picker.value = color;
  picker.dispatchEvent(new Event('input', { bubbles: true }));
  picker.dispatchEvent(new Event('change', { bubbles: true }));
}
"""

WORDS = ["darn", "heck", "fudge", "shoot"]


def run(ctx: DemoContext) -> None:
    page = ctx.page

    def scroll_to_center(selector: str) -> None:
        page.evaluate(SCROLL_TO_CENTER, selector)
        ctx.wait(300)

    ctx.wait(1500)

    tab = '[role="tab"]:nth-child(4)'
    scroll_to_center(tab)
    ctx.zoom_highlight(tab, duration=500)
    ctx.click_animated(tab)
    ctx.wait(1200)

    # Start from an empty list
    for button in page.query_selector_all('[data-testid="delete-wordset-button"]'):
        button.click()
        ctx.wait(400)
        confirm = page.query_selector('[data-testid="confirm-delete-button"]')
        if confirm:
            confirm.click()
            ctx.wait(600)

    new_button = '[data-testid="new-wordset-button"]'
    scroll_to_center(new_button)
    ctx.zoom_highlight(new_button, duration=500)
    ctx.click_animated(new_button)
    ctx.wait(800)

    scroll_to_center('[data-testid="wordset-name-input"]')
    ctx.move_to('[data-testid="wordset-name-input"]')
    ctx.wait(200)
    ctx.type_animated('[data-testid="wordset-name-input"]', "Demo Profanity List", delay=40)
    ctx.wait(600)

    ctx.move_to('[data-testid="wordset-description-input"]')
    ctx.wait(200)
    ctx.type_animated(
        '[data-testid="wordset-description-input"]',
        "A custom list of words to censor in my videos",
        delay=30,
    )
    ctx.wait(600)

    ctx.click_animated('[data-testid="color-picker"]')
    ctx.wait(300)
    page.evaluate(SET_COLOR, "#9333EA")
    ctx.wait(400)

    scroll_to_center('[data-testid="new-word-input"]')
    for word in WORDS:
        ctx.move_to('[data-testid="new-word-input"]')
        ctx.wait(150)
        ctx.type_animated('[data-testid="new-word-input"]', word, delay=60)
        ctx.wait(300)
        ctx.click_animated('[data-testid="add-word-button"]')
        ctx.wait(400)

    save = '[data-testid="save-wordset-button"]'
    scroll_to_center(save)
    ctx.wait(400)
    ctx.zoom_highlight(save, duration=700)
    ctx.click_animated(save)
    ctx.wait(1500)

    page.evaluate("() => window.scrollTo({ top: 0, behavior: 'smooth' })")
    ctx.wait(1500)


demo = {
    "id": "bleep-create-wordlist",
    "name": "Create Custom Word List",
    "url": "http://localhost:3004/bleep",
    "video": {"width": 1600, "height": 900},
    "run": run,
}
