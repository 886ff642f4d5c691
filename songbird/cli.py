import click
import uvicorn


@click.group()
def main():
    pass


@main.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=9772, type=int, show_default=True)
@click.option("--reload", is_flag=True, default=False)
def serve(host: str, port: int, reload: bool):
    """Run the chat API server."""
    uvicorn.run("songbird.app:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    main()
