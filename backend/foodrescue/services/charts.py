# foodrescue/services/charts.py
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from io import BytesIO


def plot_leaderboard_png(board: list, limit: int = 10) -> BytesIO:
    """
    Bar chart of the top shelters by points.
    board: output of ShelterRegistry.leaderboard(). Returns a PNG buffer.
    """
    top = board[:limit]
    labels = [row["name"] for row in top] or ["No shelters yet"]
    values = [row["points"] for row in top] or [0]

    fig = plt.figure()
    plt.bar(labels, values)
    plt.xticks(rotation=30, ha="right")
    plt.ylabel("Points")
    plt.title("Shelter Leaderboard")
    plt.tight_layout()

    buf = BytesIO()
    fig.savefig(buf, format="png")
    plt.close(fig)
    buf.seek(0)
    return buf
