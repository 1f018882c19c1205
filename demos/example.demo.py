"""Demo: browse the Hacker News front page."""

from demo_recorder import DemoContext, DemoDefinition


def run(ctx: DemoContext) -> None:
    ctx.wait(1500)

    ctx.highlight(".hnname a", 800)
    ctx.highlight(".titleline > a", 1000)

    ctx.zoom_highlight('a[href="newest"]', duration=600)
    ctx.click_animated('a[href="newest"]')
    ctx.page.wait_for_load_state("networkidle")
    ctx.wait(1500)

    ctx.wait(2000)


demo = DemoDefinition(
    id="example-demo",
    name="Example Demo - Hacker News",
    url="https://news.ycombinator.com",
    run=run,
)
