"""
Example: Sweep a surge command past thruster authority and plot the allocation
"""
import os
import numpy as np
import matplotlib.pyplot as plt
from thruster_controller.dynamics_model import DynamicsModel
from thruster_controller.thrust_allocator import ThrustAllocator
from thruster_controller.vehicle_config import load_vehicle_from_yaml
from thruster_controller.vehicle_state import AccelCommand, VehicleState

yaml_path = os.path.join(os.path.dirname(__file__), '..', 'config', 'reference_vehicle.yaml')
config = load_vehicle_from_yaml(yaml_path)
model = DynamicsModel(config)
allocator = ThrustAllocator(model)
state = VehicleState.identity()

# Surge command from zero to well past what four surge thrusters can deliver,
# with a constant yaw demand competing for the same thrusters
surge_cmds = np.linspace(0.0, 2.0, 81)
yaw_cmd = 0.5

forces = []
achieved = []
residual_norms = []

for surge in surge_cmds:
    command = AccelCommand(surge=surge, yaw=yaw_cmd)
    solution = allocator.allocate(command, state)
    forces.append(solution.as_array())
    achieved.append(model.accelerations(solution.as_array(), state.angular_velocity))
    residual_norms.append(solution.residual_norm)

forces = np.array(forces)
achieved = np.array(achieved)

fig, axes = plt.subplots(3, 1, figsize=(10, 11), sharex=True)

# Thruster forces
ax = axes[0]
for i, name in enumerate(model.thruster_names):
    if np.any(np.abs(forces[:, i]) > 1e-6):
        ax.plot(surge_cmds, forces[:, i], label=name, linewidth=2)
lower, upper = model.thrust_limits
ax.axhline(upper.max(), color='k', linestyle='--', alpha=0.5, label='Limit')
ax.axhline(lower.min(), color='k', linestyle='--', alpha=0.5)
ax.set_ylabel('Force [N]')
ax.set_title('Thruster forces')
ax.legend(loc='upper left', fontsize=8)
ax.grid(True, alpha=0.3)

# Commanded vs achieved
ax = axes[1]
ax.plot(surge_cmds, surge_cmds, 'k--', label='Surge cmd')
ax.plot(surge_cmds, achieved[:, 0], 'b-', linewidth=2, label='Surge achieved')
ax.plot(surge_cmds, np.full_like(surge_cmds, yaw_cmd), 'r--', label='Yaw cmd')
ax.plot(surge_cmds, achieved[:, 5], 'r-', linewidth=2, label='Yaw achieved')
ax.set_ylabel('Acceleration [m/s², rad/s²]')
ax.set_title('Commanded vs achieved acceleration')
ax.legend(loc='upper left')
ax.grid(True, alpha=0.3)

# Residual
ax = axes[2]
ax.plot(surge_cmds, residual_norms, 'g-', linewidth=2)
ax.set_xlabel('Surge command [m/s²]')
ax.set_ylabel('‖residual‖')
ax.set_title('Allocation residual (nonzero once saturated)')
ax.grid(True, alpha=0.3)

plt.tight_layout()
plt.savefig('saturation_sweep.png', dpi=150)
print("Saved to saturation_sweep.png")
plt.show()
