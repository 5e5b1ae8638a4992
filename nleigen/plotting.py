import matplotlib.pyplot as plt


def plot_convergence(solution, file_path, title=None):
    '''Relative change of omega per inner iteration, one curve per eigenvalue.'''
    fig, ax = plt.subplots(figsize=(8, 5), constrained_layout=True)
    for report in solution.reports:
        its = [rec.iteration for rec in report.history]
        errs = [max(rec.rel_error, 1e-17) for rec in report.history]
        label = f"#{report.index}" + ("" if report.converged else " (not converged)")
        ax.semilogy(its, errs, marker="o", label=label)

    ax.set_xlabel("Inner iteration")
    ax.set_ylabel(r"$|\theta - \omega| / \theta$")
    ax.grid(True, which="both", alpha=0.3)
    if solution.reports:
        ax.legend()
    if title:
        fig.suptitle(title)
    fig.savefig(file_path)
    plt.close(fig)
    return file_path
