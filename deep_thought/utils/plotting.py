import matplotlib.pyplot as plt


def plot_history(history, path=None, title="Training Loss", log_scale=False):
    """Draw a per-epoch loss curve; save it to ``path`` when given."""
    fig, ax = plt.subplots()
    ax.plot(range(len(history)), history)
    ax.set_title(title)
    ax.set_xlabel("Epoch")
    ax.set_ylabel("Loss")
    if log_scale:
        ax.set_yscale("log")
    ax.grid(True)

    if path is not None:
        fig.savefig(path)
        plt.close(fig)
    return fig
