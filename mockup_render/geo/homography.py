import cv2
import numpy as np

DET_EPS = 1e-10

# ----------------- Basic geometric helpers -----------------
def as_quad(pts4) -> np.ndarray:
    return np.asarray(pts4, np.float64).reshape(4, 2)

def area_of_quad(q):
    return float(cv2.contourArea(np.asarray(q, np.float32).reshape(-1, 1, 2)))

def bbox_to_quad(x1, y1, x2, y2):
    return np.array([[x1, y1], [x2, y1], [x2, y2], [x1, y2]], np.float64)

def is_collinear(pts4, rel_eps=1e-9) -> bool:
    """True when all 4 points lie on one line (or coincide)."""
    q = as_quad(pts4)
    if not np.isfinite(q).all():
        return True
    d = q - q[0]
    extent = float(np.abs(d).max())
    if extent == 0.0:
        return True
    cross = d[:, 0][:, None] * d[:, 1][None, :] - d[:, 1][:, None] * d[:, 0][None, :]
    return float(np.abs(cross).max()) <= rel_eps * extent * extent

def source_corners(width, height):
    """Corners of a width x height image: tl, tr, br, bl."""
    return bbox_to_quad(0, 0, width, height)

# ----------------- Linear algebra -----------------
def solve_linear_system(A, b):
    """
    Gaussian elimination with partial pivoting (row with the largest
    absolute pivot is swapped in). Singular systems are not special-cased:
    the result may contain nan/inf and callers must tolerate it.
    """
    A = np.array(A, np.float64)
    b = np.array(b, np.float64)
    n = A.shape[0]
    with np.errstate(divide="ignore", invalid="ignore"):
        for i in range(n):
            p = i + int(np.argmax(np.abs(A[i:, i])))
            if p != i:
                A[[i, p], i:] = A[[p, i], i:]
                b[[i, p]] = b[[p, i]]
            c = -A[i + 1:, i] / A[i, i]
            A[i + 1:, i:] += c[:, None] * A[i, i:]
            A[i + 1:, i] = 0.0
            b[i + 1:] += c * b[i]

        x = np.zeros(n, np.float64)
        for i in range(n - 1, -1, -1):
            x[i] = (b[i] - A[i, i + 1:] @ x[i + 1:]) / A[i, i]
    return x

# ----------------- Homography -----------------
def homography_from_points(src, dst) -> np.ndarray:
    """
    3x3 projective transform H (H[2,2] == 1) with H @ (x, y, 1) ~ (u, v, 1)
    for each of the 4 correspondences, via the 8x8 DLT system.
    """
    src, dst = as_quad(src), as_quad(dst)
    A = np.zeros((8, 8), np.float64)
    b = np.zeros(8, np.float64)
    for i, ((x, y), (u, v)) in enumerate(zip(src, dst)):
        A[2 * i] = [x, y, 1, 0, 0, 0, -u * x, -u * y]
        A[2 * i + 1] = [0, 0, 0, x, y, 1, -v * x, -v * y]
        b[2 * i] = u
        b[2 * i + 1] = v
    h = solve_linear_system(A, b)
    return np.append(h, 1.0).reshape(3, 3)

def invert_homography(H):
    """Inverse of H, or None when H is degenerate (non-finite or |det| < 1e-10)."""
    H = np.asarray(H, np.float64)
    if not np.isfinite(H).all():
        return None
    det = float(np.linalg.det(H))
    if abs(det) < DET_EPS:
        return None
    return np.linalg.inv(H)

def project_points(H, pts):
    """Apply H to N x 2 points (homogeneous divide)."""
    p = np.asarray(pts, np.float64).reshape(-1, 2)
    homog = np.hstack([p, np.ones((p.shape[0], 1))]) @ np.asarray(H, np.float64).T
    with np.errstate(divide="ignore", invalid="ignore"):
        return homog[:, :2] / homog[:, 2:3]

# ----------------- Visualization helper -----------------
def draw_quad(frame, quad, color=(0, 255, 0), thickness=2):
    """
    Draws a connected quadrilateral on the frame for visualization.
    """
    if quad is None or len(quad) != 4:
        return
    q = np.int32(np.round(np.asarray(quad, np.float64))).reshape(-1, 2)
    cv2.polylines(frame, [q], isClosed=True, color=color, thickness=thickness, lineType=cv2.LINE_AA)
