import marimo

__generated_with = "0.14.16"
app = marimo.App(width="medium")


@app.cell
def _():
    import requests as req
    import seaborn as sns
    import matplotlib.pyplot as plt
    import pandas as pd

    return req, sns, plt, pd


@app.cell
def _():
    # Point this at a running `python demo/run_pi.py serve`
    config = {
        "api_base": "http://localhost:9000",
        "n": 1000,
    }
    return (config,)


@app.cell
def _(config, req):
    def fetch(path, **params):
        """GET a JSON payload from the simulation server."""
        try:
            response = req.get(f"{config['api_base']}{path}", params=params, timeout=5)
            if response.status_code == 200:
                return response.json()
            print(f"Error fetching {path}: {response.status_code}")
        except req.exceptions.RequestException as e:
            print(f"Error fetching {path}: {e}")
        return None

    state = fetch("/api/state") or {}
    samples = (fetch("/api/samples", n=config["n"]) or {}).get("samples", [])
    print(f"Status: {state.get('status')}, total: {state.get('total')}, fetched {len(samples)} samples")
    return samples, state


@app.cell
def _(pd, samples):
    df = pd.DataFrame(samples)
    df
    return (df,)


@app.cell
def _(df, plt, sns, state):
    if df.empty:
        print("No samples yet; start the simulation first")
    else:
        geom = state["geometry"]
        fig, axes = plt.subplots(1, 2, figsize=(13, 6))

        sns.scatterplot(data=df, x="x", y="y", hue="inside", palette={True: "green", False: "red"},
                        s=12, linewidth=0, ax=axes[0])
        axes[0].add_patch(plt.Rectangle((geom["offset"], geom["offset"]), geom["square_size"], geom["square_size"],
                                        fill=False, lw=2, color="#333"))
        axes[0].add_patch(plt.Circle(tuple(geom["center"]), geom["radius"], fill=False, lw=2, color="black"))
        axes[0].set_aspect("equal")
        axes[0].invert_yaxis()
        axes[0].set_title(f"pi ~ {state['pi_estimate']:.6f}" if state.get("pi_estimate") is not None else "pi ~ ?")

        axes[1].plot(df["total"], df["z_score"])
        axes[1].axhline(0, color="grey", lw=1)
        for k in (-2, 2):
            axes[1].axhline(k, color="grey", lw=1, ls="--")
        axes[1].set_xlabel("Total samples")
        axes[1].set_ylabel("Standard deviations from expectation")

        plt.tight_layout()
        plt.show()
    return


if __name__ == "__main__":
    app.run()
