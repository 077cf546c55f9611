import logging
from functools import lru_cache

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.widgets import Slider, Button
from mpl_toolkits.mplot3d.art3d import Poly3DCollection

from geometry import (Dimensions, Pose, DEFAULT_DIMENSIONS, DEFAULT_POSE,
                      DIMENSION_RANGES, POSE_RANGES, LEG_NAMES, fixed_foot_points)
from utils import rpy_to_R, circle_points
from IK import solve
from FK import extract_rpy_from_R

logger = logging.getLogger(__name__)

DIMENSION_LABELS = {
    'front': 'Body front', 'side': 'Body side', 'middle': 'Body middle',
    'coxa': 'Coxa', 'femur': 'Femur', 'tibia': 'Tibia',
}
POSE_LABELS = {
    'tx': 'X', 'ty': 'Y', 'tz': 'Height (Z)',
    'rx': 'Roll [°]', 'ry': 'Pitch [°]', 'rz': 'Yaw [°]',
}

solve_cached = lru_cache(maxsize=128)(solve)


def format_telemetry(config):
    lines = [f"{'leg':<13}{'coxa':>8}{'femur':>8}{'tibia':>8}"]
    for leg in config.legs:
        flag = '' if leg.reachable else '  !'
        lines.append(f'{leg.name:<13}{leg.coxa_angle:8.1f}{leg.femur_angle:8.1f}'
                     f'{leg.tibia_angle:8.1f}{flag}')
    return '\n'.join(lines)


def draw_frame(ax, R, T, scale=40.0, linewidth=1.5):
    """Draws a small coordinate frame (X=red, Y=green, Z=blue)."""
    origin = np.array(T)
    axes = np.eye(3) * scale
    colors = ['r', 'g', 'b']
    lines = []
    for i in range(3):
        vec = origin + R @ axes[:, i]
        line, = ax.plot([origin[0], vec[0]],
                        [origin[1], vec[1]],
                        [origin[2], vec[2]],
                        color=colors[i], linewidth=linewidth)
        lines.append(line)
    return lines


def scene_extent(dims):
    feet = fixed_foot_points(dims)
    return 1.1 * float(np.max(np.hypot(feet[:, 0], feet[:, 1])))


def run(dims=DEFAULT_DIMENSIONS, body_pose=DEFAULT_POSE, show=True):
    logging.basicConfig(level=logging.INFO,
                        format='%(asctime)s %(name)s %(levelname)s: %(message)s')

    # --- Figure setup ---
    fig = plt.figure(figsize=(13, 9))
    ax3d = fig.add_axes([0.0, 0.30, 0.62, 0.68], projection='3d')
    fig.patch.set_facecolor('white')
    ax3d.set_facecolor('white')
    ax3d.set_xlabel('X'); ax3d.set_ylabel('Y'); ax3d.set_zlabel('Z')

    config = solve_cached(dims, body_pose)
    feet = fixed_foot_points(dims)

    # --- Ground ring, planted feet, body ---
    ext = scene_extent(dims)
    ground = circle_points(ext / 1.1)
    ground_line, = ax3d.plot(ground[:, 0], ground[:, 1], ground[:, 2],
                             lw=1.0, ls='--', color='0.6')
    feet_pts = ax3d.scatter(feet[:, 0], feet[:, 1], feet[:, 2], s=20, c='r')

    body_poly = Poly3DCollection([np.array(config.body_corners)], alpha=0.35,
                                 facecolor=(0.2, 0.25, 0.33, 0.35), edgecolor='k')
    ax3d.add_collection3d(body_poly)
    body_frame = draw_frame(ax3d, rpy_to_R(*body_pose.rotation_rad), body_pose.translation)

    J = config.joint_array()
    legs = [ax3d.plot(J[i, :, 0], J[i, :, 1], J[i, :, 2], '-o', lw=2, ms=3)[0]
            for i in range(len(LEG_NAMES))]

    # --- Camera view ---
    def set_view(ext):
        ax3d.set_xlim(-ext, ext)
        ax3d.set_ylim(-ext, ext)
        ax3d.set_zlim(-0.25*ext, 0.75*ext)
        ax3d.set_box_aspect([2, 2, 1])

    set_view(ext)
    ax3d.view_init(elev=25, azim=-60)

    # --- Servo angle bar chart ---
    ax_bar = fig.add_axes([0.70, 0.62, 0.27, 0.33])
    yidx = np.arange(len(LEG_NAMES))
    A = config.angles_deg()
    bar_groups = [ax_bar.barh(yidx + (j - 1)*0.27, A[:, j], height=0.27, label=label)
                  for j, label in enumerate(('coxa', 'femur', 'tibia'))]
    ax_bar.set_yticks(yidx)
    ax_bar.set_yticklabels(LEG_NAMES)
    ax_bar.axvline(0, linewidth=0.8)
    ax_bar.set_xlim(-180, 180)
    ax_bar.set_xlabel('angle [deg]')
    ax_bar.set_title('Servo telemetry')
    ax_bar.legend(loc='lower right', fontsize='small')

    telemetry_text = fig.text(0.66, 0.33, '', family='monospace', fontsize=9, va='bottom')
    status_text = fig.text(0.66, 0.30, '', color='red')
    frame_text = fig.text(0.02, 0.96, '', family='monospace')

    # --- Sliders ---
    sliders = {}
    for row, key in enumerate(DIMENSION_RANGES):
        lo, hi = DIMENSION_RANGES[key]
        ax_s = fig.add_axes([0.10, 0.22 - row*0.035, 0.22, 0.025])
        sliders[key] = Slider(ax_s, DIMENSION_LABELS[key], lo, hi, valinit=getattr(dims, key))
    for row, key in enumerate(POSE_RANGES):
        lo, hi = POSE_RANGES[key]
        ax_s = fig.add_axes([0.42, 0.22 - row*0.035, 0.22, 0.025])
        sliders[key] = Slider(ax_s, POSE_LABELS[key], lo, hi, valinit=getattr(body_pose, key))

    ax_reset = fig.add_axes([0.86, 0.03, 0.10, 0.05])
    reset_button = Button(ax_reset, 'Reset')

    def read_inputs():
        d = Dimensions(**{k: sliders[k].val for k in DIMENSION_RANGES})
        p = Pose(**{k: sliders[k].val for k in POSE_RANGES})
        return d, p

    def update(_):
        d, p = read_inputs()
        config = solve_cached(d, p)
        feet = fixed_foot_points(d)

        # Update ground, feet and body
        ext = scene_extent(d)
        ground = circle_points(ext / 1.1)
        ground_line.set_data_3d(ground[:, 0], ground[:, 1], ground[:, 2])
        feet_pts._offsets3d = (feet[:, 0], feet[:, 1], feet[:, 2])
        body_poly.set_verts([np.array(config.body_corners)])

        for line in body_frame:
            line.remove()
        R = rpy_to_R(*p.rotation_rad)
        body_frame[:] = draw_frame(ax3d, R, p.translation)
        rx, ry, rz = np.degrees(extract_rpy_from_R(R))
        frame_text.set_text(f'body  roll {rx:6.1f}  pitch {ry:6.1f}  yaw {rz:6.1f}')

        J = config.joint_array()
        for i, line in enumerate(legs):
            line.set_data_3d(J[i, :, 0], J[i, :, 1], J[i, :, 2])
            line.set_linestyle('-' if config.legs[i].reachable else ':')
        set_view(ext)

        # Update bars
        A = config.angles_deg()
        for j, bars in enumerate(bar_groups):
            for i, bar in enumerate(bars):
                bar.set_width(A[i, j])
                bar.set_alpha(1.0 if config.legs[i].reachable else 0.35)

        telemetry_text.set_text(format_telemetry(config))
        missed = [leg.name for leg in config.unreachable]
        status_text.set_text('' if not missed else 'Out of reach (clamped): ' + ', '.join(missed))

        fig.canvas.draw_idle()

    def reset(_):
        logger.info('resetting to default dimensions and pose')
        for s in sliders.values():
            s.reset()

    for s in sliders.values():
        s.on_changed(update)
    reset_button.on_clicked(reset)
    update(None)

    if show:
        plt.show()
    return fig, sliders, reset_button


if __name__ == "__main__":
    run()
